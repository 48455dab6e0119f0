import logging
from datetime import timedelta

import pytest

from intranet.app import db
from intranet.models import (
    AdminUser,
    CompanyInfo,
    Contact,
    Department,
    FAQ,
    ITTip,
    OneTimeCode,
    SiteSetting,
)
from intranet.services.seed import DEPARTMENTS, seed_reference_data
from intranet.shared.time import utcnow
from manage import create_admin, import_contacts, purge_expired, seed


@pytest.fixture
def runner(app):
    for command in (seed, create_admin, purge_expired, import_contacts):
        app.cli.add_command(command)
    return app.test_cli_runner()


def test_seed_is_idempotent(app, caplog):
    caplog.set_level(logging.INFO, logger="intranet.seed")
    with app.app_context():
        first = seed_reference_data()
        assert first["departments"] == len(DEPARTMENTS)
        assert first["faqs"] == 3
        again = seed_reference_data()
        assert set(again.values()) == {0}
        assert Department.query.count() == len(DEPARTMENTS)
        assert SiteSetting.query.count() == first["settings"]
        hse = Department.query.filter_by(code="HSE").one()
        assert hse.category == "hse"
        assert FAQ.query.filter_by(category="it").one().keywords[0] == "password"
        assert first["company_info"] == 1
        assert len(CompanyInfo.query.one().core_values) == 6
        assert first["it_tips"] == ITTip.query.count() == 5
        assert ITTip.query.filter_by(is_pinned=True).count() == 2
    assert "Seeded 20 departments." in caplog.text
    assert "departments already present, skipping." in caplog.text


def test_seed_command(runner):
    res = runner.invoke(args=["seed"])
    assert res.exit_code == 0
    assert "departments: 20 added" in res.output


def test_create_admin_command(app, runner):
    res = runner.invoke(
        args=["create_admin", "--email", "Boss@ARL.com", "--password", "pw123456", "--role", "admin"]
    )
    assert res.exit_code == 0
    assert "Created admin boss@arl.com" in res.output
    res = runner.invoke(args=["create_admin", "--email", "boss@arl.com", "--password", "other123"])
    assert "Password reset for boss@arl.com" in res.output
    with app.app_context():
        admin = AdminUser.query.filter_by(email="boss@arl.com").one()
        assert admin.role == "admin"
        assert admin.check_password("other123")
    bad = runner.invoke(args=["create_admin", "--email", "x@arl.com", "--password", "p", "--role", "owner"])
    assert bad.exit_code != 0


def test_purge_expired_command(app, runner):
    with app.app_context():
        old = utcnow() - timedelta(hours=2)
        db.session.add(
            OneTimeCode(
                channel="email",
                identifier="a@arl.com",
                code="1234",
                expires_at=old,
                created_at=old,
            )
        )
        db.session.commit()
    res = runner.invoke(args=["purge_expired"])
    assert res.exit_code == 0
    assert "otp_codes: 1 removed" in res.output
    assert "blacklist: 0 removed" in res.output


def test_import_contacts_command(app, runner, tmp_path):
    with app.app_context():
        db.session.add(Department(name="IT", code="IT", category="support"))
        db.session.commit()
    path = tmp_path / "contacts.csv"
    path.write_text(
        "\ufeffname,phone,department_code\nKojo,0241234567,IT\nNobody,0200000000,ZZ\n",
        encoding="utf-8",
    )
    res = runner.invoke(args=["import_contacts", "--csv", str(path)])
    assert res.exit_code == 0
    assert "Imported 1 contacts from contacts.csv, 1 failed" in res.output
    with app.app_context():
        assert Contact.query.count() == 1

    empty = tmp_path / "empty.csv"
    empty.write_text("name,phone\n", encoding="utf-8")
    res = runner.invoke(args=["import_contacts", "--csv", str(empty)])
    assert "No data rows" in res.output
