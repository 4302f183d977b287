from src.extensions import db
from models.common_fields import AuditMixin


class Supplier(AuditMixin, db.Model):
    __tablename__ = "suppliers"

    WRITABLE_FIELDS = ("supplier_name", "contact_person", "phone", "email", "gst_number", "address")
    REQUIRED_FIELDS = ("supplier_name",)

    id = db.Column(db.Integer, primary_key=True)

    # Supplier Name / Business Name
    supplier_name = db.Column(db.String(255), nullable=False)

    # Contact Person
    contact_person = db.Column(db.String(255), nullable=True)

    phone = db.Column(db.String(50), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    # GST / Tax Number
    gst_number = db.Column(db.String(50), nullable=True)

    address = db.Column(db.Text, nullable=True)

    purchase_orders = db.relationship("PurchaseOrder", back_populates="supplier", lazy=True)
