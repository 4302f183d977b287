from src.extensions import db
from models.common_fields import AuditMixin


class Branch(AuditMixin, db.Model):
    __tablename__ = "branches"

    WRITABLE_FIELDS = ("branch_name", "phone", "email", "address")
    REQUIRED_FIELDS = ("branch_name",)

    id = db.Column(db.Integer, primary_key=True)
    branch_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
