"""Management commands, available as `flask <command>` or `python manage.py <command>`."""

import click
from flask import current_app

from panavest.errors import AppError
from panavest.extensions import db


def register_commands(app):

    @app.cli.command("init-db")
    def init_db():
        """Create all database tables"""
        import panavest.models  # noqa: F401

        db.create_all()
        print("✅ Database initialized successfully!")

    @app.cli.command("drop-db")
    @click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
    def drop_db(yes):
        """Drop all database tables"""
        if not yes:
            confirmation = input("⚠️  Are you sure you want to drop all tables? (yes/no): ").lower()
            if confirmation != "yes":
                print("❌ Operation cancelled.")
                return

        db.drop_all()
        print("✅ Database dropped successfully!")

    @app.cli.command("reverify")
    @click.argument("reference")
    def reverify(reference):
        """Re-run gateway verification for REFERENCE and record the result."""
        service = current_app.extensions["payments"]
        try:
            result = service.handle_callback(reference)
        except AppError as e:
            print(f"❌ {e.__class__.__name__}: {e.message}")
            raise SystemExit(1)

        if result.paid:
            subject = result.subject
            print(f"✅ {reference} is paid ({subject.kind} {subject.subject_id} for user {subject.user_id})")
        else:
            print(f"⚠️  {reference} is not paid (gateway status: {result.status})")
