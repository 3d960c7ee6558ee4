from urllib.parse import quote

from flask import Blueprint, current_app, jsonify, redirect, request, url_for

from panavest.billing.security import SIGNATURE_HEADER
from panavest.billing.subjects import CourseSubject, EbookSubject
from panavest.extensions import limiter
from panavest.routes._helpers import get_payment_service, json_body, require_fields

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _checkout_rate_limit():
    return current_app.config.get("CHECKOUT_RATE_LIMIT", "10 per minute")


def _callback_url(slug):
    template = current_app.config.get("PAYSTACK_CALLBACK_URL")
    if template:
        return template.format(slug=quote(slug, safe=""))
    return url_for("payments.paystack_callback", slug=slug, _external=True)


def _frontend_url(path):
    return f"{current_app.config.get('FRONTEND_URL', '').rstrip('/')}{path}"


def _start_checkout(subject, email, payload):
    checkout = get_payment_service().initialize(
        subject,
        email=email,
        amount=payload.get("amount"),
        currency=payload.get("currency"),
        callback_url=_callback_url(subject.slug),
    )
    return jsonify(checkout.to_dict()), 200


@payments_bp.route("/course/initialize", methods=["POST"])
@limiter.limit(_checkout_rate_limit)
def initialize_course():
    payload = json_body()
    fields = require_fields(payload, ("user_id", "email", "course_id", "slug", "amount"))
    subject = CourseSubject(fields["user_id"], fields["course_id"], fields["slug"])
    return _start_checkout(subject, fields["email"], payload)


@payments_bp.route("/ebook/initialize", methods=["POST"])
@limiter.limit(_checkout_rate_limit)
def initialize_ebook():
    payload = json_body()
    fields = require_fields(payload, ("user_id", "email", "ebook_id", "slug", "amount"))
    subject = EbookSubject(fields["user_id"], fields["ebook_id"], fields["slug"])
    return _start_checkout(subject, fields["email"], payload)


def _reference_arg():
    # Paystack appends both `reference` and `trxref` to the callback URL
    return request.args.get("reference") or request.args.get("trxref")


@payments_bp.route("/paystack/callback", methods=["GET"])
def paystack_callback():
    """Browser return from the hosted checkout."""
    result = get_payment_service().handle_callback(_reference_arg())

    if not result.paid:
        return jsonify({
            "ok": False,
            "error": "Payment not completed",
            "status": result.status,
            "reference": result.reference,
        }), 400

    return redirect(_frontend_url(result.subject.landing_path()))


@payments_bp.route("/paystack/verify", methods=["GET"])
def paystack_verify():
    result = get_payment_service().handle_callback(_reference_arg())

    if not result.paid:
        return jsonify({
            "ok": False,
            "message": f"Status: {result.status}",
            "status": result.status,
            "reference": result.reference,
        }), 400

    return jsonify({
        "ok": True,
        "paid": True,
        "kind": result.subject.kind,
        "slug": result.subject.slug,
        "reference": result.reference,
    }), 200


@payments_bp.route("/paystack/webhook", methods=["POST"])
def paystack_webhook():
    outcome = get_payment_service().handle_webhook(
        request.get_data(),
        request.headers.get(SIGNATURE_HEADER),
    )
    return jsonify(outcome.to_dict()), 200
