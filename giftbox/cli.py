import click
from flask import current_app
from sqlalchemy import select

from giftbox.db import get_engine, main_session
from giftbox.models import Base, User
from giftbox.seed import seed_catalog


def register_cli(app):
    @app.cli.command("init-db")
    def init_db_command():
        """Create any missing tables."""
        Base.metadata.create_all(get_engine())
        click.echo(f"Database ready: {current_app.config['DATABASE_URL']}")

    @app.cli.command("drop-db")
    @click.confirmation_option(prompt="Drop every table?")
    def drop_db_command():
        Base.metadata.drop_all(get_engine())
        click.echo("Dropped all tables. Run init-db (or start the app) to recreate them.")

    @app.cli.command("seed")
    def seed_command():
        """Load the demo catalog."""
        with main_session() as db:
            products, boxes, box_types = seed_catalog(db)
        click.echo(f"Seeded products: {products}, boxes: {boxes}, box types: {box_types}")

    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin_command(email):
        with main_session() as db:
            u = db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
            if not u:
                raise click.ClickException("User not found")
            u.role = "ADMIN"
            db.commit()
        click.echo(f"User {email} is now an ADMIN.")

    @app.cli.command("check-admin")
    @click.argument("email")
    def check_admin_command(email):
        with main_session() as db:
            u = db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
            if not u:
                raise click.ClickException("User not found")
            click.echo(f"{u.email}: role={u.role} id={u.id} name={u.name or '-'}")
