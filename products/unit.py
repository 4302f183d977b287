from src.extensions import db
from models.common_fields import AuditMixin


class Unit(AuditMixin, db.Model):
    __tablename__ = "units"

    WRITABLE_FIELDS = ("unit_name",)
    REQUIRED_FIELDS = ("unit_name",)

    id = db.Column(db.Integer, primary_key=True)

    # Piece, Kg, Litre, Box ...
    unit_name = db.Column(db.String(50), nullable=False)
