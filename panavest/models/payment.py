from datetime import datetime

from panavest.extensions import db


class Payment(db.Model):
    """Ledger of every gateway reference we issued or were told about."""

    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(120), unique=True, nullable=False)
    kind = db.Column(db.String(20), nullable=False)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    subject_id = db.Column(db.String(64), nullable=False)
    amount_minor = db.Column(db.BigInteger, nullable=True)
    currency = db.Column(db.String(3), nullable=True)
    status = db.Column(db.String(30), nullable=False)
    source = db.Column(db.String(20), nullable=False)
    provider = db.Column(db.String(30), default="paystack")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
