import pytest

from panavest.models import Payment

pytestmark = pytest.mark.payment

INITIALIZE_URL = "/api/payments/ebook/initialize"
CALLBACK_URL = "/api/payments/paystack/callback"


@pytest.fixture()
def ebook_checkout(course_checkout):
    body = dict(course_checkout)
    body["ebook_id"] = body.pop("course_id")
    body["amount"] = "45.50"
    return body


@pytest.fixture()
def started(client, gateway, ebook_checkout):
    reference = client.post(INITIALIZE_URL, json=ebook_checkout).get_json()["reference"]
    return {**ebook_checkout, "reference": reference, "metadata": gateway.initialize_calls[-1]["metadata"]}


def test_initialize_records_pending_purchase(client, gateway, ebook_checkout, get_ebook_purchase):
    response = client.post(INITIALIZE_URL, json=ebook_checkout)

    assert response.status_code == 200
    reference = response.get_json()["reference"]
    assert reference.startswith("pe-")
    assert gateway.initialize_calls[-1]["amount_minor"] == 4550
    assert gateway.initialize_calls[-1]["metadata"]["kind"] == "ebook"

    purchase = get_ebook_purchase(ebook_checkout["user_id"], ebook_checkout["ebook_id"])
    assert purchase.status == "pending"
    assert purchase.gateway_reference == reference
    assert Payment.query.filter_by(reference=reference).one().kind == "ebook"


def test_ebook_requires_ebook_id(client, ebook_checkout):
    del ebook_checkout["ebook_id"]

    response = client.post(INITIALIZE_URL, json=ebook_checkout)

    assert response.status_code == 400
    assert response.get_json()["missing"] == ["ebook_id"]


@pytest.mark.webhook
def test_webhook_marks_ebook_paid(post_webhook, charge_success, started, get_ebook_purchase, get_enrollment):
    response = post_webhook(charge_success(started["reference"], started["metadata"], amount=4550))

    assert response.status_code == 200
    purchase = get_ebook_purchase(started["user_id"], started["ebook_id"])
    assert purchase.status == "paid"
    assert purchase.paid_at is not None
    assert purchase.amount_minor == 4550
    assert get_enrollment(started["user_id"], started["ebook_id"]) is None


def test_successful_callback_redirects_with_paid_flag(client, gateway, started):
    gateway.settle(started["reference"], metadata=started["metadata"], amount=4550)

    response = client.get(CALLBACK_URL, query_string={"reference": started["reference"]})

    assert response.status_code == 302
    assert response.headers["Location"] == f"https://courses.example.com/ebooks/{started['slug']}?paid=1"


def test_failed_callback_marks_purchase_failed(client, gateway, started, get_ebook_purchase):
    gateway.settle(started["reference"], status="failed", metadata=started["metadata"])

    response = client.get(CALLBACK_URL, query_string={"reference": started["reference"]})

    assert response.status_code == 400
    assert get_ebook_purchase(started["user_id"], started["ebook_id"]).status == "failed"


def test_failed_attempt_can_be_retried_and_paid(client, gateway, post_webhook, charge_success, started,
                                                 get_ebook_purchase):
    gateway.settle(started["reference"], status="failed", metadata=started["metadata"])
    client.get(CALLBACK_URL, query_string={"reference": started["reference"]})

    retry = client.post(INITIALIZE_URL, json={k: started[k] for k in ("user_id", "email", "ebook_id", "slug", "amount")})
    assert retry.status_code == 200
    reference = retry.get_json()["reference"]
    assert get_ebook_purchase(started["user_id"], started["ebook_id"]).status == "pending"

    assert post_webhook(charge_success(reference, started["metadata"], amount=4550)).status_code == 200

    purchase = get_ebook_purchase(started["user_id"], started["ebook_id"])
    assert purchase.status == "paid"
    assert purchase.gateway_reference == reference


def test_late_failure_for_a_superseded_reference_keeps_purchase_pending(
    client, gateway, started, get_ebook_purchase
):
    body = {k: started[k] for k in ("user_id", "email", "ebook_id", "slug", "amount")}
    newer = client.post(INITIALIZE_URL, json=body).get_json()["reference"]
    gateway.settle(started["reference"], status="abandoned", metadata=started["metadata"])

    response = client.get(CALLBACK_URL, query_string={"reference": started["reference"]})

    assert response.status_code == 400
    purchase = get_ebook_purchase(started["user_id"], started["ebook_id"])
    assert purchase.gateway_reference == newer
    assert purchase.status == "pending"
    assert purchase.gateway_status is None
