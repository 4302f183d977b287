from datetime import date

from src.extensions import db
from models.common_fields import AuditMixin, serialize_value

PO_STATUSES = ("pending", "received")


class PurchaseOrder(AuditMixin, db.Model):
    __tablename__ = "purchase_orders"

    id = db.Column(db.Integer, primary_key=True)

    # PO/25-26/001, sequence restarts every financial year
    order_number = db.Column(db.String(50), unique=True, nullable=False)
    order_date = db.Column(db.Date, nullable=False, default=date.today)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False)
    address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"), nullable=True)
    shipping_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"), nullable=True)

    gst_include = db.Column(db.Boolean, nullable=False, default=False)
    gst_percent = db.Column(db.Numeric(5, 2), nullable=True, default=0)

    # pending -> received, never back
    status = db.Column(db.String(20), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)

    items = db.relationship(
        "POItem", back_populates="purchase_order", cascade="all, delete-orphan", order_by="POItem.id"
    )
    supplier = db.relationship("Supplier", back_populates="purchase_orders")
    billing_address = db.relationship("Address", foreign_keys=[address_id])
    shipping_address = db.relationship("Address", foreign_keys=[shipping_address_id])

    def to_dict(self, detail=True):
        data = super().to_dict()
        if detail:
            data["items"] = [item.to_dict() for item in self.items]
            data["supplier"] = self.supplier.to_dict() if self.supplier else None
            data["billingAddress"] = self.billing_address.to_dict() if self.billing_address else None
            data["shippingAddress"] = self.shipping_address.to_dict() if self.shipping_address else None
        return data


class POItem(db.Model):
    __tablename__ = "po_items"

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    unit_quantity = db.Column(db.Numeric(12, 2), nullable=False)

    # When set, this is the quantity received into stock instead of unit_quantity
    total_quantity = db.Column(db.Numeric(12, 2), nullable=True)
    total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    created_by = db.Column(db.String(80), nullable=False, default="system")

    purchase_order = db.relationship("PurchaseOrder", back_populates="items")
    product = db.relationship("Product")

    @property
    def received_quantity(self):
        if self.total_quantity is not None:
            return self.total_quantity
        return self.unit_quantity or 0

    def to_dict(self):
        return {
            "id": self.id,
            "purchaseOrderId": self.purchase_order_id,
            "productId": self.product_id,
            "productName": self.product.product_name if self.product else None,
            "unitPrice": serialize_value(self.unit_price),
            "unitQuantity": serialize_value(self.unit_quantity),
            "totalQuantity": serialize_value(self.total_quantity),
            "total": serialize_value(self.total),
        }
