import json

import pytest
from faker import Faker

from panavest import create_app
from panavest.billing.paystack import facts_from_transaction
from panavest.billing.security import compute_paystack_signature
from panavest.errors import GatewayError
from panavest.extensions import db
from panavest.models import EbookPurchase, Enrollment

# Initialize Faker for generating test data
fake = Faker()


# Custom pytest marks for organizing tests
def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "payment: mark test as payment-related"
    )
    config.addinivalue_line(
        "markers",
        "webhook: mark test as exercising the gateway webhook"
    )
    config.addinivalue_line(
        "markers",
        "db: mark test as database-intensive"
    )


class FakePaystack:
    """In-memory stand-in for the Paystack API."""

    name = "paystack"

    def __init__(self):
        self.initialize_calls = []
        self.verify_calls = []
        self.transactions = {}
        self.reject_with = None

    def initialize_transaction(self, **kwargs):
        if self.reject_with:
            raise GatewayError(self.reject_with)
        self.initialize_calls.append(kwargs)
        reference = kwargs["reference"]
        return {
            "authorization_url": f"https://checkout.paystack.test/{reference}",
            "access_code": f"ac_{reference}",
            "reference": reference,
        }

    def settle(self, reference, status="success", metadata=None, amount=30000, currency="GHS",
               paid_at="2026-10-17T09:30:00.000Z"):
        """Make the gateway report `status` for `reference` from now on."""
        self.transactions[reference] = {
            "reference": reference,
            "status": status,
            "amount": amount,
            "currency": currency,
            "paid_at": paid_at if status == "success" else None,
            "metadata": metadata or {},
        }
        return self.transactions[reference]

    def verify_transaction(self, reference):
        self.verify_calls.append(reference)
        if reference not in self.transactions:
            raise GatewayError("Transaction reference not found")
        return facts_from_transaction(self.transactions[reference], reference=reference)


@pytest.fixture()
def gateway():
    return FakePaystack()


@pytest.fixture()
def app(gateway):
    """Application in testing mode on a fresh in-memory database"""
    app = create_app("testing", gateway=gateway)

    with app.app_context():
        db.create_all()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def service(app):
    return app.extensions["payments"]


@pytest.fixture()
def course_checkout():
    """Fixture for a course checkout request body"""
    return {
        "user_id": fake.uuid4(),
        "email": fake.email(),
        "course_id": fake.uuid4(),
        "slug": fake.slug(),
        "amount": 300,
    }


@pytest.fixture()
def sign(app):
    def _sign(body: bytes) -> str:
        return compute_paystack_signature(body, app.config["PAYSTACK_SECRET_KEY"])
    return _sign


@pytest.fixture()
def charge_success():
    def _event(reference, metadata, amount=30000, currency="GHS"):
        return {
            "event": "charge.success",
            "data": {
                "id": fake.random_int(min=100000, max=999999),
                "status": "success",
                "reference": reference,
                "amount": amount,
                "currency": currency,
                "paid_at": "2026-10-17T09:31:00.000Z",
                "customer": {"email": fake.email()},
                "metadata": metadata,
            },
        }
    return _event


@pytest.fixture()
def post_webhook(client, sign):
    def _post(event, signature=None):
        body = event if isinstance(event, bytes) else json.dumps(event).encode()
        return client.post(
            "/api/payments/paystack/webhook",
            data=body,
            headers={
                "x-paystack-signature": sign(body) if signature is None else signature,
                "Content-Type": "application/json",
            },
        )
    return _post


@pytest.fixture()
def get_enrollment(app):
    def _get(user_id, course_id):
        db.session.expire_all()
        return Enrollment.query.filter_by(user_id=user_id, course_id=course_id).first()
    return _get


@pytest.fixture()
def get_ebook_purchase(app):
    def _get(user_id, ebook_id):
        db.session.expire_all()
        return EbookPurchase.query.filter_by(user_id=user_id, ebook_id=ebook_id).first()
    return _get
