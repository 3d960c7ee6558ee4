import json
import logging
from datetime import datetime, timezone
from urllib.parse import quote

import requests

from panavest.billing.reconciliation import GatewayFacts
from panavest.errors import GatewayError, GatewayUnavailableError, NotConfiguredError

logger = logging.getLogger(__name__)

PAYSTACK_BASE_URL = "https://api.paystack.co"
CHARGE_SUCCESS = "charge.success"


def _parse_timestamp(value):
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_metadata(value):
    # Paystack hands metadata back as an object, a JSON string, or "".
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else {}
        except ValueError:
            return {}
    return value if isinstance(value, dict) else {}


def facts_from_transaction(data, reference=None):
    """Normalize a Paystack transaction object (verify response or webhook `data`)."""
    amount = data.get("amount")
    currency = data.get("currency")
    return GatewayFacts(
        reference=str(data.get("reference") or reference or ""),
        status=str(data.get("status") or "").lower(),
        amount_minor=int(amount) if isinstance(amount, (int, float)) and not isinstance(amount, bool) else None,
        currency=currency.upper() if isinstance(currency, str) and currency else None,
        paid_at=_parse_timestamp(data.get("paid_at") or data.get("paidAt")),
        metadata=_parse_metadata(data.get("metadata")),
    )


class PaystackClient:
    """
    Thin client for the two Paystack calls the checkout flow needs.

    The secret key is checked on every call rather than at construction so
    a missing key fails the request that needs it, not the whole process.
    """

    name = "paystack"

    def __init__(self, secret_key, base_url=PAYSTACK_BASE_URL, timeout=10):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self):
        if not self.secret_key:
            raise NotConfiguredError("PAYSTACK_SECRET_KEY not set")
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _send(self, call, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = call(url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Paystack request failed: {path}", exc_info=True)
            raise GatewayUnavailableError("Could not reach Paystack") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 500:
            raise GatewayUnavailableError(
                body.get("message") or f"Paystack unavailable ({response.status_code})"
            )
        if not response.ok or body.get("status") is not True or not body.get("data"):
            raise GatewayError(body.get("message") or f"Paystack request failed ({response.status_code})")
        return body["data"]

    def initialize_transaction(self, *, email, amount_minor, currency, reference, callback_url, metadata):
        data = self._send(
            requests.post,
            "/transaction/initialize",
            json={
                "email": email,
                "amount": amount_minor,
                "currency": currency,
                "reference": reference,
                "callback_url": callback_url,
                "metadata": metadata,
            },
        )
        if not data.get("authorization_url"):
            raise GatewayError("Paystack did not return an authorization URL")

        return {
            "authorization_url": data["authorization_url"],
            "access_code": data.get("access_code"),
            "reference": data.get("reference") or reference,
        }

    def verify_transaction(self, reference):
        data = self._send(requests.get, f"/transaction/verify/{quote(reference, safe='')}")
        return facts_from_transaction(data, reference=reference)
