from src.extensions import db
from models.common_fields import AuditMixin, serialize_value

ACCOUNT_STATUSES = ("due", "clear")


class Account(AuditMixin, db.Model):
    """Receivable balance per customer or branch.

    Derived from invoices and payments by ``recalculate_accounts``; never
    edited through the API.
    """

    __tablename__ = "accounts"

    id = db.Column(db.Integer, primary_key=True)

    # Exactly one of these identifies the account
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), unique=True, nullable=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), unique=True, nullable=True)

    total_billed = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_paid = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    due_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="clear")

    last_bill_id = db.Column(db.Integer, db.ForeignKey("bills.id", ondelete="SET NULL"), nullable=True)
    last_payment_id = db.Column(db.Integer, db.ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)

    customer = db.relationship("Customer")
    branch = db.relationship("Branch")
    last_bill = db.relationship("Bill", foreign_keys=[last_bill_id])

    @property
    def key(self):
        if self.customer_id is not None:
            return ("customer", self.customer_id)
        return ("branch", self.branch_id)

    def to_dict(self, detail=True):
        data = super().to_dict()
        if detail:
            data["customer"] = (
                {"id": self.customer.id, "customerName": self.customer.customer_name, "phone": self.customer.phone}
                if self.customer else None
            )
            data["branch"] = (
                {"id": self.branch.id, "branchName": self.branch.branch_name} if self.branch else None
            )
            data["lastBill"] = (
                {
                    "id": self.last_bill.id,
                    "billNo": self.last_bill.bill_no,
                    "billDate": serialize_value(self.last_bill.bill_date),
                    "grandTotal": serialize_value(self.last_bill.grand_total),
                }
                if self.last_bill else None
            )
        return data
