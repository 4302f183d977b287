from src.extensions import db
from models.common_fields import AuditMixin


class Product(AuditMixin, db.Model):
    __tablename__ = "products"

    WRITABLE_FIELDS = (
        "product_name", "bar_code", "hsn_sac_code", "category_id", "brand_id", "unit_id",
        "purchase_price", "sales_price", "gst_percent", "description", "low_qty_indication",
    )
    REQUIRED_FIELDS = ("product_name", "bar_code")

    # Product ID (Primary key)
    id = db.Column(db.Integer, primary_key=True)

    # Product Name
    product_name = db.Column(db.String(255), nullable=False)

    # Barcode / Item Code
    bar_code = db.Column(db.String(50), unique=True, nullable=False)

    # HSN / SAC Code
    hsn_sac_code = db.Column(db.String(20), nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=True)

    # Purchase Price (Cost Price)
    purchase_price = db.Column(db.Numeric(12, 2), nullable=True)

    # Selling Price
    sales_price = db.Column(db.Numeric(12, 2), nullable=True)

    gst_percent = db.Column(db.Numeric(5, 2), nullable=True)
    description = db.Column(db.Text, nullable=True)

    # Reorder Level (Minimum Stock)
    low_qty_indication = db.Column(db.Numeric(12, 2), nullable=True)

    stock = db.relationship("Stock", back_populates="product", uselist=False, lazy=True)

    def to_dict(self):
        data = super().to_dict()
        data["currentStock"] = f"{self.stock.current_stock:.2f}" if self.stock else "0.00"
        return data
