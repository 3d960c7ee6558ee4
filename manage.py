"""Management script for database and payment maintenance tasks"""

import os

from dotenv import load_dotenv
from flask.cli import FlaskGroup

load_dotenv()

from panavest import create_app  # noqa: E402


def _create_app():
    return create_app(os.getenv("APP_ENV"))


cli = FlaskGroup(create_app=_create_app)


if __name__ == "__main__":
    cli()
