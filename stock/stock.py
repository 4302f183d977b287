from datetime import datetime

from src.extensions import db
from models.common_fields import AuditMixin


class Stock(AuditMixin, db.Model):
    __tablename__ = "stock"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, unique=True)

    opening_stock = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    purchased_qty = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sold_qty = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Always opening_stock + purchased_qty - sold_qty
    current_stock = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Warehouse / store name
    location = db.Column(db.String(255), nullable=True)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship("Product", back_populates="stock")

    def to_dict(self):
        data = super().to_dict()
        data["productName"] = self.product.product_name if self.product else None
        return data
