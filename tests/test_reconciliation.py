from dataclasses import replace
from datetime import datetime, timedelta

from panavest.billing.reconciliation import (
    GatewayFacts,
    NotificationSource,
    PaymentState,
    record_intent,
    reconcile,
)

T0 = datetime(2026, 10, 17, 9, 0, 0)
PAID_AT = datetime(2026, 10, 17, 9, 30, 0)


def success(reference="pv-c1-1"):
    return GatewayFacts(reference=reference, status="success", amount_minor=30000, currency="GHS", paid_at=PAID_AT)


def abandoned(reference="pv-c1-1"):
    return GatewayFacts(reference=reference, status="abandoned", amount_minor=30000, currency="GHS")


def intent():
    return record_intent(None, reference="pv-c1-1", amount_minor=30000, currency="GHS", now=T0)


def without_timestamps(state):
    return replace(state, updated_at=None, last_webhook_at=None)


def test_intent_is_unpaid_and_keeps_the_reference():
    state = intent()
    assert state.paid is False
    assert state.paid_at is None
    assert state.gateway_reference == "pv-c1-1"
    assert state.amount_minor == 30000


def test_success_marks_paid_with_gateway_facts():
    state = reconcile(intent(), success(), now=T0 + timedelta(minutes=5))
    assert state.paid is True
    assert state.paid_at == PAID_AT
    assert state.gateway_reference == "pv-c1-1"
    assert state.gateway_status == "success"
    assert state.currency == "GHS"


def test_success_without_paid_at_uses_now():
    now = T0 + timedelta(minutes=1)
    facts = replace(success(), paid_at=None)
    assert reconcile(None, facts, now=now).paid_at == now


def test_success_creates_state_when_no_record_exists():
    state = reconcile(None, success(), now=T0)
    assert state.paid is True
    assert state.gateway_reference is not None


def test_repeated_success_only_refreshes_timestamps():
    once = reconcile(intent(), success(), now=T0)
    twice = reconcile(once, success(), now=T0 + timedelta(hours=1))
    assert without_timestamps(twice) == without_timestamps(once)
    assert twice.updated_at == T0 + timedelta(hours=1)


def test_paid_never_goes_back():
    paid = reconcile(intent(), success(), now=T0)
    after_failure = reconcile(paid, abandoned("pv-c1-2"), now=T0 + timedelta(minutes=1))
    assert after_failure.paid is True
    assert after_failure.gateway_reference == "pv-c1-1"
    assert after_failure.gateway_status == "success"


def test_failure_keeps_intent_and_records_status():
    state = reconcile(intent(), abandoned(), now=T0)
    assert state.paid is False
    assert state.gateway_status == "abandoned"
    assert state.amount_minor == 30000


def test_late_failure_for_an_older_reference_keeps_the_current_reference():
    current = record_intent(None, reference="pv-c1-new", amount_minor=30000, currency="GHS", now=T0)
    state = reconcile(current, abandoned("pv-c1-old"), now=T0)
    assert state.gateway_reference == "pv-c1-new"
    assert state.gateway_status is None
    assert state.updated_at == T0


def test_webhook_source_stamps_last_webhook_at():
    now = T0 + timedelta(minutes=2)
    by_webhook = reconcile(intent(), success(), now=now, source=NotificationSource.WEBHOOK)
    by_callback = reconcile(intent(), success(), now=now, source=NotificationSource.CALLBACK)
    assert by_webhook.last_webhook_at == now
    assert by_callback.last_webhook_at is None


def test_order_of_callback_and_webhook_does_not_matter():
    start = intent()
    webhook_first = reconcile(
        reconcile(start, success(), now=T0, source=NotificationSource.WEBHOOK),
        success(), now=T0, source=NotificationSource.CALLBACK,
    )
    callback_first = reconcile(
        reconcile(start, success(), now=T0, source=NotificationSource.CALLBACK),
        success(), now=T0, source=NotificationSource.WEBHOOK,
    )
    assert without_timestamps(webhook_first) == without_timestamps(callback_first)
    assert webhook_first.paid and callback_first.paid


def test_paid_state_default_is_unpaid():
    assert PaymentState().paid is False
