import logging
import re
from decimal import Decimal

from sqlalchemy import func

from src.extensions import db, atomic
from src.exceptions import InvalidStateTransition, NotFound
from src.validators import (
    HUNDRED, money, parse_choice, parse_decimal, parse_int, parse_text, raise_if_errors,
)
from bills.bill import Bill, BILL_TYPES, PAYMENT_STATUSES
from bills.bill_item import BillItem
from branches.branch import Branch
from customers.customer import Customer
from products.product import Product
from stock.stock_service import StockService

logger = logging.getLogger(__name__)

BILL_PREFIXES = {"quotation": "QUO", "invoice": "INV"}
_SUFFIX = re.compile(r"-(\d+)$")


def compute_line(quantity, unit_price, discount_percent=0, tax_percent=0):
    """Return (line_amount, discount, tax, line_total) for one bill line."""
    line_amount = money(Decimal(quantity) * Decimal(unit_price))
    discount = money(line_amount * Decimal(discount_percent) / HUNDRED)
    taxable = line_amount - discount
    tax = money(taxable * Decimal(tax_percent) / HUNDRED)
    return line_amount, discount, tax, money(taxable + tax)


class BillService:
    @staticmethod
    def _generate_bill_number(bill_type):
        # Format: QUO-0001 / INV-0001
        # Reads the highest issued number and adds one; two concurrent callers
        # can read the same value. The unique index on bill_no rejects the loser.
        prefix = BILL_PREFIXES[bill_type]
        last = (
            Bill.query.filter(Bill.bill_no.like(f"{prefix}-%"))
            .order_by(func.length(Bill.bill_no).desc(), Bill.bill_no.desc())
            .first()
        )
        last_number = 0
        if last:
            match = _SUFFIX.search(last.bill_no)
            if match:
                last_number = int(match.group(1))
        return f"{prefix}-{last_number + 1:04d}"

    @staticmethod
    def _parse_items(items):
        """
        items: list of dicts [{productId, quantity, unitPrice, discountPercent(optional), taxPercent(optional)}]
        """
        errors = []
        if not items or not isinstance(items, list):
            errors.append({"field": "items", "message": "Items are required"})
            raise_if_errors(errors, "Items are required")

        parsed = []
        for index, item in enumerate(items):
            field = f"items[{index}]"
            if not isinstance(item, dict):
                errors.append({"field": field, "message": "Invalid item format"})
                continue
            parsed.append({
                "product_id": parse_int(item.get("productId"), f"{field}.productId", errors),
                "quantity": parse_decimal(
                    item.get("quantity"), f"{field}.quantity", errors, minimum=0, exclusive_minimum=True
                ),
                "unit_price": parse_decimal(item.get("unitPrice"), f"{field}.unitPrice", errors, minimum=0),
                "discount_percent": parse_decimal(
                    item.get("discountPercent"), f"{field}.discountPercent", errors,
                    minimum=0, maximum=HUNDRED, default=0,
                ),
                "tax_percent": parse_decimal(
                    item.get("taxPercent"), f"{field}.taxPercent", errors,
                    minimum=0, maximum=HUNDRED, default=0,
                ),
            })
        raise_if_errors(errors)

        for index, item in enumerate(parsed):
            if db.session.get(Product, item["product_id"]) is None:
                errors.append({
                    "field": f"items[{index}].productId",
                    "message": f"Product {item['product_id']} not found",
                })
        raise_if_errors(errors)
        return parsed

    @staticmethod
    def _check_party(customer_id, branch_id, errors):
        if customer_id is not None and db.session.get(Customer, customer_id) is None:
            errors.append({"field": "customerId", "message": f"Customer {customer_id} not found"})
        if branch_id is not None and db.session.get(Branch, branch_id) is None:
            errors.append({"field": "branchId", "message": f"Branch {branch_id} not found"})

    @staticmethod
    def _add_items(bill, items):
        total = Decimal("0.00")
        total_discount = Decimal("0.00")
        total_tax = Decimal("0.00")

        for it in items:
            _, discount, tax, line_total = compute_line(
                it["quantity"], it["unit_price"], it["discount_percent"], it["tax_percent"]
            )
            bill.items.append(BillItem(
                product_id=it["product_id"],
                quantity=it["quantity"],
                unit_price=it["unit_price"],
                discount_percent=it["discount_percent"],
                tax_percent=it["tax_percent"],
                line_total=line_total,
            ))
            total += line_total
            total_discount += discount
            total_tax += tax

        bill.total_amount = total
        bill.grand_total = total
        bill.discount_amount = total_discount
        bill.tax_amount = total_tax

    @staticmethod
    def _commit_stock(bill, actor):
        for item in bill.items:
            StockService.apply_sale(item.product_id, item.quantity, actor)

    @staticmethod
    def _convert(bill, actor):
        bill.type = "invoice"
        bill.bill_no = BillService._generate_bill_number("invoice")
        BillService._commit_stock(bill, actor)

    @staticmethod
    def _get_active_for_update(bill_id):
        bill = (
            Bill.query.filter(Bill.id == bill_id, Bill.deleted_at.is_(None))
            .with_for_update()
            .first()
        )
        if not bill:
            raise NotFound("Bill not found")
        return bill

    @staticmethod
    def create_bill(bill_type, customer_id, items, remarks=None, actor="system", branch_id=None):
        """
        Creates a quotation or an invoice with its items in one transaction.
        Invoices commit every item against stock; one short product fails the whole bill.
        """
        errors = []
        bill_type = parse_choice(bill_type, "type", BILL_TYPES, errors)
        customer_id = parse_int(customer_id, "customerId", errors, required=False)
        branch_id = parse_int(branch_id, "branchId", errors, required=False)
        remarks = parse_text(remarks, "remarks", errors, max_length=255)
        if customer_id is None and branch_id is None and not errors:
            errors.append({"field": "customerId", "message": "customerId or branchId is required"})
        raise_if_errors(errors)
        BillService._check_party(customer_id, branch_id, errors)
        raise_if_errors(errors)
        parsed_items = BillService._parse_items(items)

        with atomic():
            bill = Bill(
                bill_no=BillService._generate_bill_number(bill_type),
                type=bill_type,
                customer_id=customer_id,
                branch_id=branch_id,
                remarks=remarks,
                payment_status="unpaid",
                status="active",
                created_by=actor,
            )
            db.session.add(bill)
            BillService._add_items(bill, parsed_items)
            if bill_type == "invoice":
                BillService._commit_stock(bill, actor)

        logger.info("%s %s created by %s, grand_total=%s", bill_type, bill.bill_no, actor, bill.grand_total)
        return bill

    @staticmethod
    def update_bill(bill_id, patch, actor="system"):
        """
        Patch customer/branch/remarks/type and optionally replace all items.

        Replacing the items of an invoice recomputes totals only; the stock
        committed when the invoice was created is left as it was.
        """
        patch = patch or {}
        errors = []
        customer_id = parse_int(patch.get("customerId"), "customerId", errors, required=False)
        branch_id = parse_int(patch.get("branchId"), "branchId", errors, required=False)
        remarks = parse_text(patch.get("remarks"), "remarks", errors, max_length=255)
        new_type = parse_choice(patch.get("type"), "type", BILL_TYPES, errors, required=False)
        raise_if_errors(errors)
        BillService._check_party(customer_id, branch_id, errors)
        raise_if_errors(errors)
        parsed_items = BillService._parse_items(patch["items"]) if patch.get("items") is not None else None

        with atomic():
            bill = BillService._get_active_for_update(bill_id)

            if new_type == "quotation" and bill.type == "invoice":
                raise InvalidStateTransition("An invoice cannot be turned back into a quotation")

            if customer_id is not None:
                bill.customer_id = customer_id
            if branch_id is not None:
                bill.branch_id = branch_id
            if remarks is not None:
                bill.remarks = remarks

            if parsed_items is not None:
                bill.items.clear()
                db.session.flush()
                BillService._add_items(bill, parsed_items)
                if bill.type == "invoice":
                    logger.warning(
                        "Items of invoice %s replaced; stock is not reconciled against the new items",
                        bill.bill_no,
                    )
                    if bill.payments:
                        logger.warning(
                            "Items of invoice %s replaced; payment status %s is not recomputed for grand_total=%s",
                            bill.bill_no, bill.payment_status, bill.grand_total,
                        )

            if new_type == "invoice" and bill.type == "quotation":
                BillService._convert(bill, actor)

            bill.updated_by = actor

        logger.info("Bill %s updated by %s", bill.bill_no, actor)
        return bill

    @staticmethod
    def convert_to_invoice(bill_id, actor="system"):
        with atomic():
            bill = BillService._get_active_for_update(bill_id)
            if bill.type != "quotation":
                raise InvalidStateTransition("Only quotations can be converted")
            old_no = bill.bill_no
            BillService._convert(bill, actor)
            bill.updated_by = actor

        logger.info("Quotation %s converted to invoice %s", old_no, bill.bill_no)
        return bill

    @staticmethod
    def get_bill(bill_id):
        bill = Bill.active().filter(Bill.id == bill_id).first()
        if not bill:
            raise NotFound("Bill not found")
        return bill

    @staticmethod
    def list_query(bill_type=None, payment_status=None, customer_id=None, branch_id=None):
        errors = []
        parse_choice(bill_type, "type", BILL_TYPES, errors, required=False)
        parse_choice(payment_status, "paymentStatus", PAYMENT_STATUSES, errors, required=False)
        customer_id = parse_int(customer_id, "customerId", errors, required=False)
        branch_id = parse_int(branch_id, "branchId", errors, required=False)
        raise_if_errors(errors)

        query = Bill.active()
        if bill_type:
            query = query.filter(Bill.type == bill_type)
        if payment_status:
            query = query.filter(Bill.payment_status == payment_status)
        if customer_id is not None:
            query = query.filter(Bill.customer_id == customer_id)
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        return query.order_by(Bill.created_at.desc(), Bill.id.desc())

    @staticmethod
    def list_bills(**filters):
        return BillService.list_query(**filters).all()

    @staticmethod
    def soft_delete(bill_id, actor="system"):
        with atomic():
            bill = BillService._get_active_for_update(bill_id)
            bill.soft_delete(actor)
        logger.info("Bill %s soft deleted by %s", bill.bill_no, actor)
        return bill

    @staticmethod
    def restore(bill_id, actor="system"):
        with atomic():
            bill = db.session.get(Bill, bill_id)
            if not bill:
                raise NotFound("Bill not found")
            bill.restore()
            bill.updated_by = actor
        logger.info("Bill %s restored by %s", bill.bill_no, actor)
        return bill

    @staticmethod
    def hard_delete(bill_id):
        with atomic():
            bill = db.session.get(Bill, bill_id)
            if not bill:
                raise NotFound("Bill not found")
            bill_no = bill.bill_no
            db.session.delete(bill)
        logger.info("Bill %s permanently deleted", bill_no)
        return bill_no

    @staticmethod
    def export_rows():
        rows = []
        for bill in BillService.list_bills():
            rows.append({
                "Bill No": bill.bill_no,
                "Type": bill.type,
                "Date": bill.bill_date.isoformat() if bill.bill_date else None,
                "Customer": bill.customer.customer_name if bill.customer else None,
                "Branch": bill.branch.branch_name if bill.branch else None,
                "Total Amount": float(bill.total_amount or 0),
                "Discount": float(bill.discount_amount or 0),
                "Tax": float(bill.tax_amount or 0),
                "Grand Total": float(bill.grand_total or 0),
                "Paid": float(sum(Decimal(p.amount_paid) for p in bill.payments)),
                "Payment Status": bill.payment_status,
                "Status": bill.status,
            })
        return rows
