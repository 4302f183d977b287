from src.extensions import db
from models.common_fields import AuditMixin


class Address(AuditMixin, db.Model):
    __tablename__ = "addresses"

    WRITABLE_FIELDS = ("address_bill", "address_ship", "phone", "email")
    REQUIRED_FIELDS = ()

    id = db.Column(db.Integer, primary_key=True)

    # Billing address text
    address_bill = db.Column(db.Text, nullable=True)

    # Shipping address text
    address_ship = db.Column(db.Text, nullable=True)

    phone = db.Column(db.String(50), nullable=True)
    email = db.Column(db.String(255), nullable=True)
