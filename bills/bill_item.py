from src.extensions import db
from models.common_fields import serialize_value


class BillItem(db.Model):
    __tablename__ = "bill_items"

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Numeric(12, 2), nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)  # percentage
    tax_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)  # percentage

    # (quantity * unit_price - discount) + tax, rounded to the cent
    line_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    bill = db.relationship("Bill", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self):
        return {
            "id": self.id,
            "billId": self.bill_id,
            "productId": self.product_id,
            "productName": self.product.product_name if self.product else None,
            "quantity": serialize_value(self.quantity),
            "unitPrice": serialize_value(self.unit_price),
            "discountPercent": serialize_value(self.discount_percent),
            "taxPercent": serialize_value(self.tax_percent),
            "lineTotal": serialize_value(self.line_total),
        }
