import logging
from decimal import Decimal

from src.extensions import db, atomic
from src.exceptions import InvalidOperation, NotFound
from src.validators import parse_choice, parse_decimal, parse_text, raise_if_errors
from bills.bill import Bill
from payments.payment import Payment, PAYMENT_MODES

logger = logging.getLogger(__name__)


def payment_status_for(total_paid, grand_total):
    if total_paid >= grand_total:
        return "paid"
    if total_paid > 0:
        return "partial"
    return "unpaid"


class PaymentService:
    @staticmethod
    def add_payment(bill_id, payment_mode, amount_paid, transaction_id=None, actor="system"):
        """
        Append a payment to an invoice and recompute its payment status
        from the sum of every payment recorded against it.
        """
        errors = []
        payment_mode = parse_choice(payment_mode, "paymentMode", PAYMENT_MODES, errors)
        amount = parse_decimal(amount_paid, "amountPaid", errors, minimum=0, exclusive_minimum=True)
        transaction_id = parse_text(transaction_id, "transactionId", errors, max_length=255)
        raise_if_errors(errors)

        with atomic():
            bill = (
                Bill.query.filter(Bill.id == bill_id, Bill.deleted_at.is_(None))
                .with_for_update()
                .first()
            )
            if not bill:
                raise NotFound("Bill not found")
            if bill.type != "invoice":
                raise InvalidOperation("Payments only apply to invoices")
            if bill.status == "cancelled":
                raise InvalidOperation("Cannot add a payment to a cancelled invoice")

            previous_payments = sum((Decimal(p.amount_paid) for p in bill.payments), Decimal("0"))
            payment = Payment(
                bill_id=bill.id,
                payment_mode=payment_mode,
                amount_paid=amount,
                transaction_id=transaction_id,
                created_by=actor,
            )
            bill.payments.append(payment)

            total_paid = previous_payments + amount
            bill.payment_status = payment_status_for(total_paid, Decimal(bill.grand_total or 0))
            bill.updated_by = actor

        logger.info(
            "Payment of %s (%s) recorded on %s; total paid %s of %s, status %s",
            amount, payment_mode, bill.bill_no, total_paid, bill.grand_total, bill.payment_status,
        )
        return {"payment": payment, "paymentStatus": bill.payment_status, "bill": bill}

    @staticmethod
    def list_payments(bill_id):
        return Payment.query.filter_by(bill_id=bill_id).order_by(Payment.id).all()
