from datetime import datetime

from src.extensions import db
from models.common_fields import serialize_value

PAYMENT_MODES = ("cash", "upi", "card", "bank")


class Payment(db.Model):
    """A single receipt against an invoice. Rows are never updated once written."""

    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False)
    payment_mode = db.Column(db.String(20), nullable=False)  # cash / upi / card / bank
    amount_paid = db.Column(db.Numeric(14, 2), nullable=False)
    transaction_id = db.Column(db.String(255), nullable=True)
    payment_date = db.Column(db.DateTime, default=datetime.utcnow)
    created_by = db.Column(db.String(80), nullable=False, default="system")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    bill = db.relationship("Bill", back_populates="payments")

    def to_dict(self):
        return {
            "id": self.id,
            "billId": self.bill_id,
            "paymentMode": self.payment_mode,
            "amountPaid": serialize_value(self.amount_paid),
            "transactionId": self.transaction_id,
            "paymentDate": serialize_value(self.payment_date),
            "createdBy": self.created_by,
        }
