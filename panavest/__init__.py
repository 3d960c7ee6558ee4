"""
Flask application factory for the course checkout and payments service.
"""

import logging

import sentry_sdk
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration

from panavest.config import get_config
from panavest.errors import register_error_handlers
from panavest.extensions import db, init_extensions
from panavest.logging_config import setup_logging
from panavest.middleware.request_id import init_request_id_middleware

logger = logging.getLogger(__name__)


def setup_sentry(app: Flask) -> None:
    """Initialize Sentry error tracking"""
    sentry_dsn = app.config.get("SENTRY_DSN")

    if sentry_dsn and app.config.get("ENVIRONMENT") == "production":
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment="production",
            release=app.config.get("APP_VERSION", "1.0.0"),
            send_default_pii=False,
        )
        app.logger.info("Sentry error tracking initialized")


def init_payments(app: Flask, gateway=None) -> None:
    """Build the payment service once and hang it off the app."""
    from panavest.billing.paystack import PaystackClient
    from panavest.billing.service import PaymentService
    from panavest.billing.store import PaymentStore

    if gateway is None:
        gateway = PaystackClient(
            secret_key=app.config.get("PAYSTACK_SECRET_KEY"),
            base_url=app.config.get("PAYSTACK_BASE_URL"),
            timeout=app.config.get("PAYSTACK_TIMEOUT", 10),
        )

    app.extensions["payments"] = PaymentService(
        gateway=gateway,
        store=PaymentStore(db.session, gateway_name=getattr(gateway, "name", "paystack")),
        webhook_secret=app.config.get("PAYSTACK_WEBHOOK_SECRET") or app.config.get("PAYSTACK_SECRET_KEY"),
        default_currency=app.config.get("DEFAULT_CURRENCY", "GHS"),
    )


def create_app(config_name=None, config_overrides=None, gateway=None) -> Flask:
    """
    Create the application.

    `gateway` replaces the Paystack client (tests pass a fake one);
    `config_overrides` is applied on top of the selected config class.
    """
    config_class = get_config(config_name)
    config_class.validate()

    app = Flask(__name__)
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)

    init_request_id_middleware(app)
    setup_logging(app)
    init_extensions(app)
    register_error_handlers(app)

    from panavest.routes import register_blueprints
    register_blueprints(app)

    from panavest.commands import register_commands
    register_commands(app)

    init_payments(app, gateway=gateway)
    setup_sentry(app)

    logger.info(f"Application created in {app.config.get('ENVIRONMENT')} mode")
    return app
