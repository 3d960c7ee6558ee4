from datetime import datetime

from panavest.extensions import db


class Enrollment(db.Model):
    """One user's access to one course."""

    __tablename__ = "enrollments"
    __table_args__ = (
        db.UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    course_id = db.Column(db.String(64), nullable=False, index=True)
    paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime, nullable=True)
    currency = db.Column(db.String(3), nullable=True)
    amount_minor = db.Column(db.BigInteger, nullable=True)
    gateway = db.Column(db.String(30), nullable=False, default="paystack")
    gateway_reference = db.Column(db.String(120), nullable=True, index=True)
    gateway_status = db.Column(db.String(30), nullable=True)
    last_webhook_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "course_id": self.course_id,
            "paid": self.paid,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "currency": self.currency,
            "amount_minor": self.amount_minor,
            "gateway_reference": self.gateway_reference,
            "gateway_status": self.gateway_status,
        }

    def __repr__(self):
        return f"<Enrollment user={self.user_id} course={self.course_id} paid={self.paid}>"
