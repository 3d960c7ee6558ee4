from flask import Blueprint, jsonify, request

from panavest.billing.subjects import CourseSubject, EbookSubject
from panavest.routes._helpers import get_payment_service, require_fields

enrollments_bp = Blueprint("enrollments", __name__, url_prefix="/api")


def _status(subject):
    row = get_payment_service().store.find(subject)
    return {
        "enrolled": row is not None,
        "paid": bool(row is not None and row.paid),
        "paid_at": row.paid_at.isoformat() if row is not None and row.paid_at else None,
        "gateway_reference": row.gateway_reference if row is not None else None,
    }


@enrollments_bp.route("/enrollments/status", methods=["GET"])
def enrollment_status():
    """Whether a user has paid access to a course (the dashboard paywall check)."""
    fields = require_fields(request.args, ("user_id", "course_id"))
    return jsonify(_status(CourseSubject(fields["user_id"], fields["course_id"]))), 200


@enrollments_bp.route("/ebooks/purchases/status", methods=["GET"])
def ebook_purchase_status():
    fields = require_fields(request.args, ("user_id", "ebook_id"))
    return jsonify(_status(EbookSubject(fields["user_id"], fields["ebook_id"]))), 200
