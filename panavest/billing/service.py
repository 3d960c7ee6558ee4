"""
Checkout and payment reconciliation.

`PaymentService` is built once by the app factory with an explicit gateway
client and store. The browser callback and the gateway webhook both end in
`_apply`, which runs the pure `reconcile` step inside one store
transaction, so whichever notification arrives first marks the product
paid and every later one is a harmless repeat.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from panavest.billing.currency import normalize_currency, to_minor_units
from panavest.billing.paystack import CHARGE_SUCCESS, facts_from_transaction
from panavest.billing.reconciliation import (
    SUCCESS,
    NotificationSource,
    record_intent,
    reconcile,
    utcnow,
)
from panavest.billing.security import verify_paystack_signature
from panavest.billing.subjects import generate_reference, subject_from_metadata
from panavest.errors import (
    AlreadyPaidError,
    InvalidSignatureError,
    MissingMetadataError,
    NotConfiguredError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    authorization_url: str
    access_code: Optional[str]
    reference: str

    def to_dict(self):
        return {
            "ok": True,
            "authorization_url": self.authorization_url,
            "access_code": self.access_code,
            "reference": self.reference,
        }


@dataclass(frozen=True)
class ReconciliationResult:
    reference: str
    status: str
    paid: bool
    subject: Optional[object] = None


@dataclass(frozen=True)
class WebhookOutcome:
    event: Optional[str]
    handled: bool
    result: Optional[ReconciliationResult] = None

    def to_dict(self):
        if not self.handled:
            return {"ok": True, "ignored": self.event}
        return {"ok": True, "event": self.event, "reference": self.result.reference}


class PaymentService:
    def __init__(self, gateway, store, *, webhook_secret=None, default_currency="GHS", clock=utcnow):
        self.gateway = gateway
        self.store = store
        self.webhook_secret = webhook_secret
        self.default_currency = default_currency
        self.clock = clock

    # -- checkout -------------------------------------------------------

    def initialize(self, subject, *, email, amount, callback_url, currency=None):
        """
        Record the checkout intent and open a hosted checkout for `subject`.

        The intent row is written before the gateway is called; if the
        gateway then fails the row simply stays unpaid and the caller can
        try again with a fresh reference.
        """
        if not email or "@" not in str(email):
            raise ValidationError("A valid email is required")

        currency = normalize_currency(currency or self.default_currency)
        amount_minor = to_minor_units(amount, currency)
        reference = generate_reference(subject)
        now = self.clock()

        with self.store.transaction():
            current = self.store.load(subject)
            if current is not None and current.paid:
                raise AlreadyPaidError(
                    f"This {subject.kind} is already paid for",
                    payload={"kind": subject.kind, "reference": current.gateway_reference},
                )
            self.store.save(subject, record_intent(
                current, reference=reference, amount_minor=amount_minor, currency=currency, now=now,
            ))
            self.store.record_payment(
                reference, subject,
                status="initialized", amount_minor=amount_minor, currency=currency,
                source=NotificationSource.INITIALIZE, now=now,
            )

        checkout = self.gateway.initialize_transaction(
            email=email,
            amount_minor=amount_minor,
            currency=currency,
            reference=reference,
            callback_url=callback_url,
            metadata=subject.to_metadata(),
        )
        logger.info(
            "Checkout initialized",
            extra={"reference": reference, "kind": subject.kind, "amount_minor": amount_minor, "currency": currency},
        )
        return CheckoutSession(
            authorization_url=checkout["authorization_url"],
            access_code=checkout.get("access_code"),
            reference=checkout.get("reference") or reference,
        )

    # -- notifications --------------------------------------------------

    def handle_callback(self, reference):
        """
        Verify `reference` with the gateway and reconcile the result.

        A non-success status is an ordinary outcome: the record keeps (or
        gets) its unpaid state and the result says so.
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValidationError("Missing reference")

        facts = self.gateway.verify_transaction(reference)

        if not facts.succeeded:
            try:
                subject = subject_from_metadata(facts.metadata)
            except MissingMetadataError:
                subject = None
            if subject is not None:
                self._apply(subject, facts, NotificationSource.CALLBACK)
            logger.info(
                "Payment not successful",
                extra={"reference": reference, "status": facts.status},
            )
            return ReconciliationResult(reference=reference, status=facts.status, paid=False, subject=subject)

        subject = subject_from_metadata(facts.metadata, require_slug=True)
        state = self._apply(subject, facts, NotificationSource.CALLBACK)
        return ReconciliationResult(
            reference=facts.reference, status=facts.status, paid=state.paid, subject=subject,
        )

    def handle_webhook(self, raw_body, signature):
        """
        Authenticate and apply one gateway webhook delivery.

        The signature is checked against the raw bytes before anything is
        parsed. Errors raised after that propagate as server errors so the
        gateway redelivers.
        """
        if not self.webhook_secret:
            raise NotConfiguredError("Paystack webhook secret is not configured")

        if not verify_paystack_signature(raw_body, signature, self.webhook_secret):
            logger.warning("Rejected webhook with invalid signature")
            raise InvalidSignatureError("Invalid signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise ValidationError("Malformed webhook payload") from None
        if not isinstance(event, dict):
            raise ValidationError("Malformed webhook payload")

        event_type = event.get("event")
        data = event.get("data")
        if not isinstance(data, dict):
            data = {}

        if event_type != CHARGE_SUCCESS or str(data.get("status", "")).lower() != SUCCESS:
            logger.info("Ignoring webhook event", extra={"event": event_type})
            return WebhookOutcome(event=event_type, handled=False)

        facts = facts_from_transaction(data)
        subject = subject_from_metadata(facts.metadata)
        state = self._apply(subject, facts, NotificationSource.WEBHOOK)

        return WebhookOutcome(
            event=event_type,
            handled=True,
            result=ReconciliationResult(
                reference=facts.reference, status=facts.status, paid=state.paid, subject=subject,
            ),
        )

    def _apply(self, subject, facts, source):
        if facts.succeeded and not facts.reference:
            raise MissingMetadataError("Gateway reported a success without a reference")

        now = self.clock()
        with self.store.transaction():
            current = self.store.load(subject)
            state = reconcile(current, facts, now=now, source=source)
            self.store.save(subject, state)
            if facts.reference:
                self.store.record_payment(
                    facts.reference, subject,
                    status=facts.status, amount_minor=facts.amount_minor, currency=facts.currency,
                    source=source, now=now,
                )

        logger.info(
            "Payment reconciled",
            extra={
                "reference": facts.reference,
                "kind": subject.kind,
                "source": source.value,
                "gateway_status": facts.status,
                "paid": state.paid,
                "was_paid": bool(current and current.paid),
            },
        )
        return state
