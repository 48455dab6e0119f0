import logging
import os
import secrets

from flask import (
    Flask,
    g,
    has_request_context,
    render_template,
    request,
    session,
)
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect

db = SQLAlchemy()

from .models import AdminUser  # noqa: E402
from .shared.constants import ADMIN_ROLE_SUPERADMIN  # noqa: E402
from .shared.time import fmt_dt, fmt_date, time_ago  # noqa: E402
from .shared.nav import build_public_menu, build_admin_menu  # noqa: E402

# Endpoints that stay reachable while maintenance mode is on
MAINTENANCE_EXEMPT_PREFIXES = (
    "admin",
    "user_auth.",
    "api.",
    "static",
)
MAINTENANCE_EXEMPT_ENDPOINTS = {"health"}


def create_app():
    app = Flask(__name__, template_folder="templates")
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["PREFERRED_URL_SCHEME"] = "https"
    app.config["IS_PRODUCTION"] = os.getenv("FLASK_ENV") == "production"
    app.config["SESSION_COOKIE_SECURE"] = app.config["IS_PRODUCTION"]
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.jinja_env.filters["fmt_dt"] = fmt_dt
    app.jinja_env.filters["fmt_date"] = fmt_date
    app.jinja_env.filters["time_ago"] = time_ago

    def generate_csrf_token():
        token = session.get("_csrf_token")
        if not token:
            token = secrets.token_hex(16)
            session["_csrf_token"] = token
        return token

    app.jinja_env.globals["csrf_token"] = generate_csrf_token

    DB_USER = os.getenv("DB_USER", "intranet")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "intranet")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    # largest upload class is video
    app.config["MAX_CONTENT_LENGTH"] = 100 * 1024 * 1024

    app.config["JWT_SECRET"] = os.getenv(
        "JWT_SECRET", "arl-jwt-secret-change-in-production"
    )
    app.config["JWT_EXPIRES_IN"] = os.getenv("JWT_EXPIRES_IN", "15m")
    app.config["JWT_REFRESH_EXPIRES_IN"] = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")

    db.init_app(app)

    @app.context_processor
    def inject_user():
        from .services.user_auth import get_current_user
        from .services.site_settings import get_setting

        if not has_request_context():
            return {}
        admin = None
        admin_id = session.get("admin_id")
        if admin_id:
            admin = db.session.get(AdminUser, admin_id)
            if admin and not admin.is_active:
                admin = None
        portal_user = get_current_user()
        is_admin_page = (request.endpoint or "").startswith("admin")
        if is_admin_page:
            nav_menu = build_admin_menu(admin)
        else:
            nav_menu = build_public_menu(portal_user)
        return {
            "current_admin": admin,
            "current_user": portal_user,
            "nav_menu": nav_menu,
            "site_name": get_setting("siteName"),
        }

    @app.before_request
    def reset_request_user():
        g.pop("portal_user", None)

    @app.before_request
    def enforce_maintenance_mode():
        from .services.site_settings import (
            get_maintenance_message,
            is_maintenance_mode,
        )

        endpoint = request.endpoint or ""
        if endpoint in MAINTENANCE_EXEMPT_ENDPOINTS or endpoint.startswith(
            MAINTENANCE_EXEMPT_PREFIXES
        ):
            return None
        if session.get("admin_id"):
            return None
        if not is_maintenance_mode():
            return None
        return (
            render_template(
                "maintenance.html", message=get_maintenance_message()
            ),
            503,
        )

    @app.errorhandler(403)
    def forbidden(_exc):
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(_exc):
        return render_template("errors/404.html"), 404

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    from .routes.public import bp as public_bp
    from .routes.user_auth import bp as user_auth_bp
    from .routes.api import bp as api_bp
    from .routes.admin_auth import bp as admin_auth_bp
    from .routes.admin import bp as admin_bp
    from .routes.admin_news import bp as admin_news_bp
    from .routes.admin_policies import bp as admin_policies_bp
    from .routes.admin_directory import bp as admin_directory_bp
    from .routes.admin_apps import bp as admin_apps_bp
    from .routes.admin_alerts import bp as admin_alerts_bp
    from .routes.admin_toolbox_talks import bp as admin_toolbox_talks_bp
    from .routes.admin_faqs import bp as admin_faqs_bp
    from .routes.admin_company import bp as admin_company_bp
    from .routes.admin_executive_messages import bp as admin_executive_messages_bp
    from .routes.admin_it_tips import bp as admin_it_tips_bp
    from .routes.admin_suggestions import bp as admin_suggestions_bp
    from .routes.admin_portal_users import bp as admin_portal_users_bp
    from .routes.admin_users import bp as admin_users_bp
    from .routes.admin_settings import bp as admin_settings_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(user_auth_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(admin_news_bp)
    app.register_blueprint(admin_policies_bp)
    app.register_blueprint(admin_directory_bp)
    app.register_blueprint(admin_apps_bp)
    app.register_blueprint(admin_alerts_bp)
    app.register_blueprint(admin_toolbox_talks_bp)
    app.register_blueprint(admin_faqs_bp)
    app.register_blueprint(admin_company_bp)
    app.register_blueprint(admin_executive_messages_bp)
    app.register_blueprint(admin_it_tips_bp)
    app.register_blueprint(admin_suggestions_bp)
    app.register_blueprint(admin_portal_users_bp)
    app.register_blueprint(admin_users_bp)
    app.register_blueprint(admin_settings_bp)

    with app.app_context():
        if not os.getenv("FLASK_SKIP_SEED"):
            seed_initial_admin_safely()

    return app


def seed_initial_admin_safely() -> None:
    """Seed a superadmin if the admin_users table exists and is empty."""

    try:
        if db.engine.url.drivername.startswith("sqlite"):
            return
        insp = inspect(db.engine)
        if "admin_users" not in insp.get_table_names():
            logging.info("seed skipped (admin_users missing)")
            return

        if db.session.query(AdminUser).count() > 0:
            return

        email = os.getenv("FIRST_ADMIN_EMAIL", "admin@arl.com").lower()
        admin = AdminUser(
            email=email,
            name="Administrator",
            role=ADMIN_ROLE_SUPERADMIN,
            is_active=True,
        )
        password = os.getenv("FIRST_ADMIN_PASSWORD")
        if password:
            admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        logging.info("Seeded initial superadmin %s", email)
    except Exception:
        db.session.rollback()
        logging.exception("seed_initial_admin_safely failed")


app = create_app()
