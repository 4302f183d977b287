import logging
import re
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from src.extensions import db, atomic
from src.exceptions import ConstraintViolation, InvalidStateTransition, NotFound
from src.validators import (
    money, parse_choice, parse_date, parse_decimal, parse_int, parse_text, raise_if_errors,
)
from addresses.address import Address
from products.product import Product
from purchases.purchase_order import PurchaseOrder, POItem, PO_STATUSES
from stock.stock_service import StockService
from suppliers.supplier import Supplier

logger = logging.getLogger(__name__)

_ORDER_SUFFIX = re.compile(r"^PO/\d{2}-\d{2}/(\d+)$")


def financial_year(today=None):
    """Indian financial year (April to March) as "YY-YY", e.g. 25-26."""
    today = today or date.today()
    start = today.year if today.month >= 4 else today.year - 1
    return f"{start % 100:02d}-{(start + 1) % 100:02d}"


class PurchaseOrderService:
    @staticmethod
    def _generate_order_number(today=None):
        # Format: PO/YY-YY/NNN
        # Same read-then-insert race as bill numbers; the unique index is the backstop.
        prefix = f"PO/{financial_year(today)}/"
        last = (
            PurchaseOrder.query.filter(PurchaseOrder.order_number.like(f"{prefix}%"))
            .order_by(func.length(PurchaseOrder.order_number).desc(), PurchaseOrder.order_number.desc())
            .first()
        )
        last_number = 0
        if last:
            match = _ORDER_SUFFIX.match(last.order_number)
            if match:
                last_number = int(match.group(1))
        return f"{prefix}{last_number + 1:03d}"

    @staticmethod
    def preview_order_number():
        return PurchaseOrderService._generate_order_number()

    @staticmethod
    def _parse_items(items, errors):
        if not isinstance(items, list):
            errors.append({"field": "items", "message": "must be a list"})
            return []

        parsed = []
        for index, item in enumerate(items):
            field = f"items[{index}]"
            if not isinstance(item, dict):
                errors.append({"field": field, "message": "Invalid item format"})
                continue
            product_id = parse_int(item.get("productId"), f"{field}.productId", errors)
            if product_id is not None and db.session.get(Product, product_id) is None:
                errors.append({"field": f"{field}.productId", "message": f"Product {product_id} not found"})
            # Frontends send either unitPrice or rate
            price = item.get("unitPrice", item.get("rate"))
            unit_price = parse_decimal(price, f"{field}.unitPrice", errors, minimum=0, default=0)
            unit_quantity = parse_decimal(
                item.get("unitQuantity"), f"{field}.unitQuantity", errors, minimum=0, exclusive_minimum=True
            )
            total_quantity = None
            if item.get("totalQuantity") is not None:
                total_quantity = parse_decimal(item["totalQuantity"], f"{field}.totalQuantity", errors, minimum=0)
            total = None
            if item.get("total") is not None:
                total = parse_decimal(item["total"], f"{field}.total", errors, minimum=0)
            elif unit_price is not None and unit_quantity is not None:
                received = total_quantity if total_quantity is not None else unit_quantity
                total = money(unit_price * received)

            parsed.append({
                "product_id": product_id,
                "unit_price": unit_price,
                "unit_quantity": unit_quantity,
                "total_quantity": total_quantity,
                "total": total,
            })
        return parsed

    @staticmethod
    def _parse_header(data, errors, creating):
        header = {}
        if creating or "supplierId" in data:
            supplier_id = parse_int(data.get("supplierId"), "supplierId", errors, required=True)
            if supplier_id is not None and db.session.get(Supplier, supplier_id) is None:
                errors.append({"field": "supplierId", "message": f"Supplier {supplier_id} not found"})
            header["supplier_id"] = supplier_id
        for key, column in (("addressId", "address_id"), ("shippingAddressId", "shipping_address_id")):
            if key in data:
                address_id = parse_int(data.get(key), key, errors, required=False)
                if address_id is not None and db.session.get(Address, address_id) is None:
                    errors.append({"field": key, "message": f"Address {address_id} not found"})
                header[column] = address_id
        if "orderDate" in data:
            header["order_date"] = parse_date(data.get("orderDate"), "orderDate", errors)
        if "gstInclude" in data:
            header["gst_include"] = bool(data.get("gstInclude"))
        if "gstPercent" in data and data.get("gstPercent") is not None:
            header["gst_percent"] = parse_decimal(
                data.get("gstPercent"), "gstPercent", errors, minimum=0, maximum=Decimal("100")
            )
        if "notes" in data:
            header["notes"] = parse_text(data.get("notes"), "notes", errors)
        if data.get("orderNumber") is not None:
            order_number = parse_text(data.get("orderNumber"), "orderNumber", errors, max_length=50)
            if order_number and order_number.strip():
                header["order_number"] = order_number.strip()
        return header

    @staticmethod
    def _ensure_unique_number(order_number, exclude_id=None):
        query = PurchaseOrder.query.filter(PurchaseOrder.order_number == order_number)
        if exclude_id is not None:
            query = query.filter(PurchaseOrder.id != exclude_id)
        if query.first():
            raise ConstraintViolation(
                errors=[{"field": "orderNumber", "message": "Order number already exists"}]
            )

    @staticmethod
    def _add_items(po, items, actor):
        for it in items:
            po.items.append(POItem(
                product_id=it["product_id"],
                unit_price=it["unit_price"],
                unit_quantity=it["unit_quantity"],
                total_quantity=it["total_quantity"],
                total=it["total"],
                created_by=actor,
            ))

    @staticmethod
    def create_purchase_order(data, actor="system"):
        data = data or {}
        errors = []
        header = PurchaseOrderService._parse_header(data, errors, creating=True)
        status = parse_choice(data.get("status", "pending"), "status", ("pending",), errors)
        items = data.get("items") or []
        if not items:
            errors.append({"field": "items", "message": "At least one item is required"})
        parsed_items = PurchaseOrderService._parse_items(items, errors)
        raise_if_errors(errors)

        with atomic():
            if "order_number" in header:
                PurchaseOrderService._ensure_unique_number(header["order_number"])
            else:
                header["order_number"] = PurchaseOrderService._generate_order_number()
            if header.get("order_date") is None:
                header["order_date"] = date.today()

            po = PurchaseOrder(status=status, created_by=actor, **header)
            db.session.add(po)
            PurchaseOrderService._add_items(po, parsed_items, actor)

        logger.info("Purchase order %s created by %s with %d items", po.order_number, actor, len(po.items))
        return po

    @staticmethod
    def _receive_stock(po, actor):
        """
        Credit every item of a just-received order to stock.

        Each product runs in its own savepoint: a failure is logged and skipped
        and the rest of the order update still commits.
        """
        receipt = {"updated": [], "skipped": [], "failed": []}
        items = POItem.query.filter_by(purchase_order_id=po.id).order_by(POItem.id).all()
        if not items:
            logger.warning("Purchase order %s has no items, skipping stock update", po.order_number)

        for item in items:
            quantity_to_add = Decimal(item.received_quantity or 0)
            if quantity_to_add <= 0:
                logger.info("Skipping stock update for product %s - quantity is %s", item.product_id, quantity_to_add)
                receipt["skipped"].append(item.product_id)
                continue
            try:
                with db.session.begin_nested():
                    StockService.apply_purchase(item.product_id, quantity_to_add, actor)
                receipt["updated"].append(item.product_id)
            except Exception:
                logger.exception(
                    "Error updating stock for product %s on purchase order %s", item.product_id, po.order_number
                )
                receipt["failed"].append(item.product_id)
        return receipt

    @staticmethod
    def update_purchase_order(po_id, patch, actor="system"):
        """
        Returns (purchase_order, receipt). ``receipt`` is None unless this update
        moved the order into "received".
        """
        patch = patch or {}
        errors = []
        header = PurchaseOrderService._parse_header(patch, errors, creating=False)
        new_status = parse_choice(patch.get("status"), "status", PO_STATUSES, errors, required=False)
        items = patch.get("items")
        parsed_items = PurchaseOrderService._parse_items(items, errors) if items is not None else None
        raise_if_errors(errors)

        receipt = None
        with atomic():
            po = (
                PurchaseOrder.query.filter(PurchaseOrder.id == po_id, PurchaseOrder.deleted_at.is_(None))
                .with_for_update()
                .first()
            )
            if not po:
                raise NotFound("PurchaseOrder not found")

            previous_status = po.status
            if new_status == "pending" and previous_status == "received":
                raise InvalidStateTransition("A received purchase order cannot go back to pending")
            becomes_received = new_status == "received" and previous_status != "received"

            if "order_number" in header:
                PurchaseOrderService._ensure_unique_number(header["order_number"], exclude_id=po.id)
            for column, value in header.items():
                if column == "order_date" and value is None:
                    continue
                setattr(po, column, value)
            if new_status:
                po.status = new_status
            po.updated_by = actor

            if parsed_items is not None:
                po.items.clear()
                db.session.flush()
                PurchaseOrderService._add_items(po, parsed_items, actor)
            db.session.flush()

            if becomes_received:
                logger.info("Purchase order %s received, updating stock", po.order_number)
                receipt = PurchaseOrderService._receive_stock(po, actor)

        logger.info("Purchase order %s updated by %s", po.order_number, actor)
        return po, receipt

    @staticmethod
    def get_purchase_order(po_id):
        po = PurchaseOrder.active().filter(PurchaseOrder.id == po_id).first()
        if not po:
            raise NotFound("PurchaseOrder not found")
        return po

    @staticmethod
    def list_query(status=None):
        query = PurchaseOrder.active()
        if status:
            query = query.filter(PurchaseOrder.status == status)
        return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())

    @staticmethod
    def soft_delete(po_id, actor="system"):
        with atomic():
            po = PurchaseOrderService.get_purchase_order(po_id)
            po.soft_delete(actor)
        return po

    @staticmethod
    def restore(po_id, actor="system"):
        with atomic():
            po = db.session.get(PurchaseOrder, po_id)
            if not po:
                raise NotFound("PurchaseOrder not found")
            po.restore()
            po.updated_by = actor
        return po

    @staticmethod
    def hard_delete(po_id):
        with atomic():
            po = db.session.get(PurchaseOrder, po_id)
            if not po:
                raise NotFound("PurchaseOrder not found")
            db.session.delete(po)
        return po_id
