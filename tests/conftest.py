import os
import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# the module-level app in intranet.app is built on import
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FLASK_SKIP_SEED"] = "1"
for var in ("SMTP_HOST", "SMS_API_KEY", "CLOUDINARY_CLOUD_NAME"):
    os.environ.pop(var, None)

from intranet.app import create_app, db
from intranet.models import AdminUser, Department, PortalUser
from intranet.services import chatbot
from intranet.services.site_settings import clear_settings_cache


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    application = create_app()
    application.config["TESTING"] = True
    clear_settings_cache()
    chatbot.reset_rate_limits()
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
    clear_settings_cache()


@pytest.fixture
def client(app):
    return app.test_client()


def make_admin(email="admin@arl.com", role="superadmin", password="secret123", name="Admin"):
    admin = AdminUser(email=email, name=name, role=role, is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return admin


def login_admin(client, admin_id, csrf="test-csrf"):
    with client.session_transaction() as sess:
        sess["admin_id"] = admin_id
        sess["_csrf_token"] = csrf
    return csrf


def make_department(code="HR", name="HR & Admin", category="support"):
    dept = Department(name=name, code=code, category=category)
    db.session.add(dept)
    db.session.commit()
    return dept


def make_portal_user(dept, phone="+233241234567", email="ama@arl.com", name="Ama Owusu", **kwargs):
    user = PortalUser(name=name, phone=phone, email=email, department_id=dept.id, **kwargs)
    db.session.add(user)
    db.session.commit()
    return user
