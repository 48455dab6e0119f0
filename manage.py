from intranet.app import create_app, db
import os

from flask_migrate import Migrate
from flask.cli import FlaskGroup
import click
from sqlalchemy import func
from intranet.models import AdminUser
from intranet.shared.constants import ADMIN_ROLES, ADMIN_ROLE_SUPERADMIN
from intranet.services import directory, tokens
from intranet.services.seed import seed_reference_data


migrate = Migrate()


def create_intranet_app():
    app = create_app()
    migrate.init_app(app, db)
    return app


cli = FlaskGroup(create_app=create_intranet_app)


@cli.command("seed")
def seed():
    """Insert default settings, departments, categories, apps, FAQs and company content."""
    counts = seed_reference_data()
    for table, added in counts.items():
        click.echo(f"{table}: {added} added")


@cli.command("create_admin")
@click.option("--email", required=True)
@click.option("--name", default="Administrator")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option(
    "--role",
    type=click.Choice(list(ADMIN_ROLES)),
    default=ADMIN_ROLE_SUPERADMIN,
    show_default=True,
)
def create_admin(email: str, name: str, password: str, role: str):
    """Create an admin account, or reset the password of an existing one."""
    email = email.strip().lower()
    admin = (
        db.session.query(AdminUser)
        .filter(func.lower(AdminUser.email) == email)
        .one_or_none()
    )
    if admin:
        admin.set_password(password)
        admin.is_active = True
        db.session.commit()
        click.echo(f"Password reset for {email}")
        return
    admin = AdminUser(email=email, name=name, role=role, is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    click.echo(f"Created {role} {email} id={admin.id}")


@cli.command("purge_expired")
def purge_expired():
    """Delete expired blacklist entries, refresh tokens and login codes."""
    removed = tokens.purge_expired()
    for kind, count in removed.items():
        click.echo(f"{kind}: {count} removed")


@cli.command("import_contacts")
@click.option(
    "--csv",
    "csv_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
def import_contacts(csv_path: str):
    """Bulk-load directory contacts from a CSV export."""
    with open(csv_path, "rb") as fh:
        text = fh.read().decode("utf-8-sig")
    rows = directory.parse_contacts_csv(text)
    if not rows:
        click.echo("No data rows", err=True)
        return
    result = directory.import_contacts(rows)
    for err in result["errors"]:
        click.echo(err, err=True)
    click.echo(
        f"Imported {result['success']} contacts from {os.path.basename(csv_path)}, "
        f"{result['failed']} failed"
    )


if __name__ == "__main__":
    cli()
