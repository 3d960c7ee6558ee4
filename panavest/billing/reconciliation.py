"""
Pure state transitions for paid products.

`reconcile` folds one authoritative gateway report into the stored state.
It may be applied any number of times, in any order, from the callback or
the webhook path: once a record is paid it stays paid, and repeats only
refresh the timestamp fields.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

SUCCESS = "success"


class NotificationSource(str, Enum):
    INITIALIZE = "initialize"
    CALLBACK = "callback"
    WEBHOOK = "webhook"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class GatewayFacts:
    """What the gateway reported about one transaction."""

    reference: str
    status: str
    amount_minor: Optional[int] = None
    currency: Optional[str] = None
    paid_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS


@dataclass(frozen=True)
class PaymentState:
    paid: bool = False
    paid_at: Optional[datetime] = None
    currency: Optional[str] = None
    amount_minor: Optional[int] = None
    gateway_reference: Optional[str] = None
    gateway_status: Optional[str] = None
    last_webhook_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def record_intent(current, *, reference, amount_minor, currency, now):
    """State for a checkout that is about to start. Callers must not pass a paid state."""
    base = current or PaymentState()
    return replace(
        base,
        paid=False,
        paid_at=None,
        currency=currency,
        amount_minor=amount_minor,
        gateway_reference=reference,
        gateway_status=None,
        updated_at=now,
    )


def reconcile(current, facts, *, now, source=NotificationSource.CALLBACK):
    if source is NotificationSource.WEBHOOK:
        last_webhook_at = now
    else:
        last_webhook_at = current.last_webhook_at if current else None

    if current is not None and current.paid:
        return replace(current, last_webhook_at=last_webhook_at, updated_at=now)

    base = current or PaymentState()

    if not facts.succeeded:
        # A report for a superseded reference says nothing about the current checkout
        current_reference = base.gateway_reference or facts.reference
        return replace(
            base,
            gateway_reference=current_reference,
            gateway_status=facts.status if facts.reference == current_reference else base.gateway_status,
            last_webhook_at=last_webhook_at,
            updated_at=now,
        )

    return PaymentState(
        paid=True,
        paid_at=facts.paid_at or now,
        currency=facts.currency or base.currency,
        amount_minor=facts.amount_minor if facts.amount_minor is not None else base.amount_minor,
        gateway_reference=facts.reference,
        gateway_status=facts.status,
        last_webhook_at=last_webhook_at,
        updated_at=now,
    )
