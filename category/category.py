from src.extensions import db
from models.common_fields import AuditMixin


class Category(AuditMixin, db.Model):
    __tablename__ = "categories"

    WRITABLE_FIELDS = ("category_name", "description")
    REQUIRED_FIELDS = ("category_name",)

    id = db.Column(db.Integer, primary_key=True)
    category_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
