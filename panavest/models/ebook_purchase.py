from datetime import datetime

from panavest.extensions import db


class EbookPurchase(db.Model):
    __tablename__ = "ebook_purchases"
    __table_args__ = (
        db.UniqueConstraint("user_id", "ebook_id", name="uq_ebook_purchases_user_ebook"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    ebook_id = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default="pending")  # pending | paid | failed
    paid_at = db.Column(db.DateTime, nullable=True)
    currency = db.Column(db.String(3), nullable=True)
    amount_minor = db.Column(db.BigInteger, nullable=True)
    gateway = db.Column(db.String(30), nullable=False, default="paystack")
    gateway_reference = db.Column(db.String(120), nullable=True, index=True)
    gateway_status = db.Column(db.String(30), nullable=True)
    last_webhook_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def paid(self):
        return self.status == "paid"

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "ebook_id": self.ebook_id,
            "status": self.status,
            "paid": self.paid,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "currency": self.currency,
            "amount_minor": self.amount_minor,
            "gateway_reference": self.gateway_reference,
        }
