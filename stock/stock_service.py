import logging
from datetime import datetime
from decimal import Decimal

from src.extensions import db
from src.exceptions import InsufficientStock, NotFound, ValidationError
from src.validators import money
from products.product import Product
from stock.stock import Stock

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class StockService:
    """The only code that writes stock counters.

    Callers own the transaction; nothing here commits.
    """

    @staticmethod
    def recompute(stock):
        stock.current_stock = (
            Decimal(stock.opening_stock or 0)
            + Decimal(stock.purchased_qty or 0)
            - Decimal(stock.sold_qty or 0)
        )
        stock.last_updated = datetime.utcnow()
        return stock

    @staticmethod
    def find_for_update(product_id):
        return Stock.query.filter_by(product_id=product_id).with_for_update().first()

    @staticmethod
    def get_or_create(product_id, actor="system"):
        stock = StockService.find_for_update(product_id)
        if stock is None:
            logger.info("Creating stock record for product %s", product_id)
            stock = Stock(
                product_id=product_id,
                opening_stock=ZERO,
                purchased_qty=ZERO,
                sold_qty=ZERO,
                current_stock=ZERO,
                created_by=actor,
            )
            db.session.add(stock)
        return stock

    @staticmethod
    def apply_sale(product_id, quantity, actor="system"):
        """Commit ``quantity`` of a product against stock; refuses to go below zero."""
        quantity = money(quantity)
        stock = StockService.find_for_update(product_id)
        available = Decimal(stock.current_stock or 0) if stock else ZERO
        if stock is None or available < quantity:
            logger.warning(
                "Insufficient stock for product %s: available=%s requested=%s",
                product_id, available, quantity,
            )
            raise InsufficientStock(product_id, available, quantity)

        stock.sold_qty = Decimal(stock.sold_qty or 0) + quantity
        stock.updated_by = actor
        StockService.recompute(stock)
        return stock

    @staticmethod
    def apply_purchase(product_id, quantity, actor="system"):
        quantity = money(quantity)
        stock = StockService.get_or_create(product_id, actor)
        stock.purchased_qty = Decimal(stock.purchased_qty or 0) + quantity
        stock.updated_by = actor
        StockService.recompute(stock)
        logger.info(
            "Stock updated for product %s: purchased_qty=%s current_stock=%s",
            product_id, stock.purchased_qty, stock.current_stock,
        )
        return stock

    @staticmethod
    def set_opening_stock(product_id, opening_stock=None, location=None, actor="system"):
        if db.session.get(Product, product_id) is None:
            raise NotFound(f"Product {product_id} not found")
        stock = StockService.get_or_create(product_id, actor)
        if opening_stock is not None:
            opening_stock = money(opening_stock)
            if opening_stock < 0:
                raise ValidationError(errors=[{"field": "openingStock", "message": "must be at least 0"}])
            stock.opening_stock = opening_stock
            if opening_stock + Decimal(stock.purchased_qty or 0) - Decimal(stock.sold_qty or 0) < 0:
                raise ValidationError(
                    errors=[{"field": "openingStock", "message": "would make current stock negative"}]
                )
        if location is not None:
            stock.location = location
        stock.updated_by = actor
        StockService.recompute(stock)
        return stock
