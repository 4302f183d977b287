from datetime import date

from src.extensions import db
from models.common_fields import AuditMixin

BILL_TYPES = ("quotation", "invoice")
PAYMENT_STATUSES = ("unpaid", "partial", "paid")
BILL_STATUSES = ("active", "cancelled")


class Bill(AuditMixin, db.Model):
    __tablename__ = "bills"

    id = db.Column(db.Integer, primary_key=True)

    # QUO-0001 / INV-0001, allocated per type
    bill_no = db.Column(db.String(50), unique=True, nullable=False)
    type = db.Column(db.String(20), nullable=False, default="quotation")

    # One of customer_id / branch_id identifies who is billed
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    bill_date = db.Column(db.Date, nullable=False, default=date.today)

    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    grand_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    payment_status = db.Column(db.String(20), nullable=False, default="unpaid")
    status = db.Column(db.String(20), nullable=False, default="active")
    remarks = db.Column(db.Text, nullable=True)

    items = db.relationship(
        "BillItem", back_populates="bill", cascade="all, delete-orphan", order_by="BillItem.id"
    )
    payments = db.relationship(
        "Payment", back_populates="bill", cascade="all, delete-orphan", order_by="Payment.id"
    )
    customer = db.relationship("Customer", back_populates="bills")
    branch = db.relationship("Branch")

    def to_dict(self, detail=True):
        data = super().to_dict()
        if detail:
            data["items"] = [item.to_dict() for item in self.items]
            data["payments"] = [payment.to_dict() for payment in self.payments]
            data["customer"] = self.customer.to_dict() if self.customer else None
        return data
