from src.extensions import db
from models.common_fields import AuditMixin


class Customer(AuditMixin, db.Model):
    __tablename__ = "customers"

    WRITABLE_FIELDS = ("customer_name", "phone", "email", "gst_pan_number", "pincode", "address", "branch_id")
    REQUIRED_FIELDS = ("customer_name", "phone")

    id = db.Column(db.Integer, primary_key=True)

    # Contact Person / Full Name
    customer_name = db.Column(db.String(255), nullable=False)

    # Phone Number
    phone = db.Column(db.String(50), nullable=False)

    # Email Address
    email = db.Column(db.String(255), nullable=True)

    # GST / PAN Number
    gst_pan_number = db.Column(db.String(50), nullable=True)

    pincode = db.Column(db.String(20), nullable=True)
    address = db.Column(db.Text, nullable=True)

    # Home branch (optional)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    bills = db.relationship("Bill", back_populates="customer", lazy=True)
