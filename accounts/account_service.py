import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import selectinload

from src.extensions import db, atomic
from src.exceptions import NotFound
from src.validators import money
from accounts.account import Account
from bills.bill import Bill
from payments.payment import Payment

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
SNAPSHOT_FIELDS = ("total_billed", "total_paid", "due_amount", "status", "last_bill_id", "last_payment_id")
AGING_BUCKETS = ("0-30", "31-60", "61-90", "90+")


def _recency(row):
    return (row.created_at or datetime.min, row.id or 0)


def build_account_snapshots(invoices):
    """
    Group invoices by customer (falling back to branch) and compute each
    group's balance.

    Pure: reads attributes of the given invoices and their ``payments`` and
    returns ``{("customer" | "branch", id): snapshot}``.
    """
    groups = {}
    for invoice in invoices:
        if invoice.customer_id is not None:
            key = ("customer", invoice.customer_id)
        elif invoice.branch_id is not None:
            key = ("branch", invoice.branch_id)
        else:
            logger.warning("Invoice %s has no customer or branch, skipping", invoice.bill_no)
            continue
        groups.setdefault(key, []).append(invoice)

    snapshots = {}
    for key, group in groups.items():
        total_billed = sum((Decimal(inv.grand_total or 0) for inv in group), ZERO)
        payments = [p for inv in group for p in (inv.payments or [])]
        total_paid = sum((Decimal(p.amount_paid or 0) for p in payments), ZERO)
        due_amount = max(total_billed - total_paid, ZERO)

        snapshots[key] = {
            "customer_id": key[1] if key[0] == "customer" else None,
            "branch_id": key[1] if key[0] == "branch" else None,
            "total_billed": money(total_billed),
            "total_paid": money(total_paid),
            "due_amount": money(due_amount),
            "status": "due" if due_amount > 0 else "clear",
            "last_bill_id": max(group, key=_recency).id,
            "last_payment_id": max(payments, key=_recency).id if payments else None,
        }
    return snapshots


def _zero_snapshot():
    return {
        "total_billed": ZERO,
        "total_paid": ZERO,
        "due_amount": ZERO,
        "status": "clear",
        "last_bill_id": None,
        "last_payment_id": None,
    }


def _apply_snapshot(account, snapshot):
    """Write only the columns that differ. Returns True when anything changed."""
    changed = False
    for field in SNAPSHOT_FIELDS:
        value = snapshot[field]
        if getattr(account, field) != value:
            setattr(account, field, value)
            changed = True
    if changed:
        account.updated_by = "system"
    return changed


def recalculate_accounts():
    """Rebuild every Account row from invoices and payments."""
    invoices = (
        Bill.active()
        .filter(Bill.type == "invoice")
        .options(selectinload(Bill.payments))
        .order_by(Bill.id)
        .all()
    )
    logger.info("Found %d invoices", len(invoices))
    snapshots = build_account_snapshots(invoices)

    summary = {"created": 0, "updated": 0, "unchanged": 0, "zeroed": 0}
    with atomic():
        existing = {account.key: account for account in Account.query.order_by(Account.id).all()}

        for key, snapshot in snapshots.items():
            account = existing.pop(key, None)
            if account is None:
                db.session.add(Account(created_by="system", **snapshot))
                summary["created"] += 1
            elif _apply_snapshot(account, snapshot):
                summary["updated"] += 1
            else:
                summary["unchanged"] += 1

        # Accounts whose invoices are all gone are cleared, not deleted
        for account in existing.values():
            if _apply_snapshot(account, _zero_snapshot()):
                logger.info("Reset account %s with no invoices", account.id)
                summary["zeroed"] += 1
            else:
                summary["unchanged"] += 1

    logger.info(
        "Account recalculation complete: %(created)d created, %(updated)d updated, "
        "%(zeroed)d zeroed, %(unchanged)d unchanged",
        summary,
    )
    return summary


class AccountService:
    @staticmethod
    def list_query():
        return Account.active().order_by(Account.created_at.desc(), Account.id.desc())

    @staticmethod
    def get_for_party(party_id):
        """Account of a customer, or of a branch when no customer account matches."""
        account = Account.active().filter(Account.customer_id == party_id).first()
        if account is None:
            account = Account.active().filter(Account.branch_id == party_id).first()
        if account is None:
            raise NotFound("Account not found for this customer")

        if account.customer_id is not None:
            bill_filter = Bill.customer_id == account.customer_id
        else:
            bill_filter = Bill.branch_id == account.branch_id
        payments = (
            Payment.query.join(Bill, Payment.bill_id == Bill.id)
            .filter(bill_filter)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(50)
            .all()
        )
        return account, payments

    @staticmethod
    def receivables_report(customer_id=None, today=None):
        """Accounts with an outstanding balance, aged by the date of their last bill."""
        today = today or date.today()
        query = Account.active().filter(Account.status == "due", Account.due_amount > 0)
        if customer_id is not None:
            query = query.filter(Account.customer_id == customer_id)
        accounts = query.order_by(Account.due_amount.desc(), Account.id).all()

        buckets = {name: ZERO for name in AGING_BUCKETS}
        total_receivables = ZERO
        total_days = 0
        rows = []
        for account in accounts:
            due = Decimal(account.due_amount)
            total_receivables += due

            last_bill = account.last_bill
            if last_bill is not None and last_bill.bill_date is not None:
                days_overdue = max((today - last_bill.bill_date).days, 0)
                total_days += days_overdue
                if days_overdue <= 30:
                    bucket = "0-30"
                elif days_overdue <= 60:
                    bucket = "31-60"
                elif days_overdue <= 90:
                    bucket = "61-90"
                else:
                    bucket = "90+"
            else:
                # No bill date to age from
                days_overdue = 0
                bucket = "90+"
            buckets[bucket] += due

            rows.append({
                "id": account.id,
                "customerId": account.customer_id,
                "branchId": account.branch_id,
                "customer": account.customer.customer_name if account.customer else "Unknown",
                "branch": account.branch.branch_name if account.branch else "-",
                "phone": account.customer.phone if account.customer else "-",
                "totalBilled": f"{account.total_billed:.2f}",
                "totalPaid": f"{account.total_paid:.2f}",
                "dueAmount": f"{due:.2f}",
                "daysOverdue": days_overdue,
                "agingBucket": bucket,
                "lastBillNo": last_bill.bill_no if last_bill else "-",
                "lastBillDate": last_bill.bill_date.isoformat() if last_bill and last_bill.bill_date else "-",
            })

        count = len(rows)
        return {
            "receivablesData": rows,
            "summary": {
                "totalReceivables": f"{total_receivables:.2f}",
                "customersWithDues": count,
                "avgDaysOverdue": round(total_days / count) if count else 0,
                "agingBuckets": {name: f"{value:.2f}" for name, value in buckets.items()},
            },
        }
