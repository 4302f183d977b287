from src.extensions import db
from models.common_fields import AuditMixin


class Brand(AuditMixin, db.Model):
    __tablename__ = "brands"

    WRITABLE_FIELDS = ("brand_name",)
    REQUIRED_FIELDS = ("brand_name",)

    id = db.Column(db.Integer, primary_key=True)
    brand_name = db.Column(db.String(255), nullable=False)
