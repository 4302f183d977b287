import logging
from decimal import Decimal

import pytest

from bills.bill import Bill
from bills.bill_item import BillItem
from bills.bill_service import BillService, compute_line
from payments.payment import Payment
from payments.payment_service import PaymentService
from src.exceptions import InsufficientStock, InvalidStateTransition, NotFound, ValidationError


def _items(*pairs):
    return [{"productId": p.id, "quantity": q, "unitPrice": "100.00"} for p, q in pairs]


def _assert_ledger(stock):
    assert stock.current_stock == stock.opening_stock + stock.purchased_qty - stock.sold_qty


class TestLineMath:
    def test_discount_then_tax_rounded_per_line(self):
        line_amount, discount, tax, total = compute_line(Decimal("2"), Decimal("100.00"), 10, 18)
        assert line_amount == Decimal("200.00")
        assert discount == Decimal("20.00")
        assert tax == Decimal("32.40")
        assert total == Decimal("212.40")

    def test_half_cent_rounds_up(self):
        _, _, tax, total = compute_line(Decimal("1"), Decimal("49.99"), 0, 5)
        assert tax == Decimal("2.50")
        assert total == Decimal("52.49")


class TestCreateBill:
    def test_invoice_totals_match_line_items(self, client, auth_headers, customer, make_product):
        p1 = make_product(stock=10)
        p2 = make_product(stock=10)
        response = client.post('/bills/', headers=auth_headers, json={
            "type": "invoice",
            "customerId": customer.id,
            "items": [
                {"productId": p1.id, "quantity": 2, "unitPrice": "100.00", "discountPercent": 10, "taxPercent": 18},
                {"productId": p2.id, "quantity": 1, "unitPrice": "49.99", "taxPercent": 5},
            ],
        })

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["billNo"] == "INV-0001"
        assert [item["lineTotal"] for item in data["items"]] == ["212.40", "52.49"]
        assert data["grandTotal"] == "264.89"
        assert data["totalAmount"] == "264.89"
        assert data["discountAmount"] == "20.00"
        assert data["taxAmount"] == "34.90"
        assert data["paymentStatus"] == "unpaid"

    def test_invoice_decrements_stock(self, db_session, customer, make_product, stock_of):
        product = make_product(stock=10)
        BillService.create_bill("invoice", customer.id, _items((product, 3)))
        assert stock_of(product.id) == Decimal("7.00")

    def test_quotation_leaves_stock_alone(self, db_session, customer, make_product, stock_of):
        product = make_product(stock=1)
        bill = BillService.create_bill("quotation", customer.id, _items((product, 5)))
        assert bill.bill_no == "QUO-0001"
        assert stock_of(product.id) == Decimal("1.00")

    def test_short_item_rolls_back_whole_invoice(self, client, auth_headers, customer, make_product, stock_of):
        plenty = make_product(stock=10)
        short = make_product(stock=1)

        response = client.post('/bills/', headers=auth_headers, json={
            "type": "invoice",
            "customerId": customer.id,
            "items": _items((plenty, 4), (short, 2)),
        })

        assert response.status_code == 400
        body = response.get_json()
        assert body["success"] is False
        assert f"Insufficient stock for product {short.id}" in body["message"]
        assert Bill.query.count() == 0
        assert BillItem.query.count() == 0
        assert stock_of(plenty.id) == Decimal("10.00")
        assert stock_of(short.id) == Decimal("1.00")

    def test_product_without_stock_row_is_insufficient(self, db_session, customer, make_product):
        product = make_product()
        with pytest.raises(InsufficientStock):
            BillService.create_bill("invoice", customer.id, _items((product, 1)))

    def test_numbers_are_sequential_per_type(self, db_session, customer, make_product):
        product = make_product(stock=100)
        numbers = [
            BillService.create_bill(bill_type, customer.id, _items((product, 1))).bill_no
            for bill_type in ("quotation", "quotation", "invoice", "quotation", "invoice")
        ]
        assert numbers == ["QUO-0001", "QUO-0002", "INV-0001", "QUO-0003", "INV-0002"]

    def test_soft_deleted_bills_still_hold_their_number(self, db_session, customer, make_product):
        product = make_product(stock=10)
        first = BillService.create_bill("quotation", customer.id, _items((product, 1)))
        BillService.soft_delete(first.id)
        second = BillService.create_bill("quotation", customer.id, _items((product, 1)))
        assert second.bill_no == "QUO-0002"

    def test_branch_can_stand_in_for_customer(self, db_session, branch, make_product):
        product = make_product(stock=10)
        bill = BillService.create_bill("quotation", None, _items((product, 1)), branch_id=branch.id)
        assert bill.customer_id is None
        assert bill.branch_id == branch.id

    def test_customer_or_branch_required(self, db_session, make_product):
        product = make_product(stock=10)
        with pytest.raises(ValidationError) as exc:
            BillService.create_bill("quotation", None, _items((product, 1)))
        assert exc.value.errors[0]["field"] == "customerId"

    def test_invalid_items_report_field_errors(self, client, auth_headers, customer, make_product):
        product = make_product(stock=10)
        response = client.post('/bills/', headers=auth_headers, json={
            "type": "invoice",
            "customerId": customer.id,
            "items": [{"productId": product.id, "quantity": 0, "unitPrice": "-1"}],
        })

        assert response.status_code == 400
        fields = {error["field"] for error in response.get_json()["errors"]}
        assert fields == {"items[0].quantity", "items[0].unitPrice"}

    def test_empty_items_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            BillService.create_bill("invoice", customer.id, [])

    def test_unknown_product_rejected(self, db_session, customer):
        with pytest.raises(ValidationError) as exc:
            BillService.create_bill("quotation", customer.id, [{"productId": 999, "quantity": 1, "unitPrice": 1}])
        assert exc.value.errors[0]["field"] == "items[0].productId"

    def test_fractional_quantity_rounded_to_cents_before_stock(self, db_session, customer, make_product, stock_row):
        product = make_product(stock=10)

        bill = BillService.create_bill("invoice", customer.id, _items((product, "1.005")))

        db_session.expire_all()
        item = BillItem.query.filter_by(bill_id=bill.id).one()
        assert item.quantity == Decimal("1.01")
        assert item.line_total == Decimal("101.00")
        stock = stock_row(product.id)
        assert stock.sold_qty == Decimal("1.01")
        assert stock.current_stock == Decimal("8.99")
        _assert_ledger(stock)

    def test_quantity_rounding_to_zero_rejected(self, db_session, customer, make_product):
        product = make_product(stock=10)
        with pytest.raises(ValidationError) as exc:
            BillService.create_bill("invoice", customer.id, _items((product, "0.004")))
        assert exc.value.errors[0]["field"] == "items[0].quantity"


class TestConvert:
    def test_convert_renumbers_and_commits_stock(self, client, auth_headers, customer, make_product, stock_of):
        product = make_product(stock=10)
        quotation = BillService.create_bill("quotation", customer.id, _items((product, 4)))

        response = client.post(f'/bills/{quotation.id}/convert', headers=auth_headers)

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["type"] == "invoice"
        assert data["billNo"] == "INV-0001"
        assert stock_of(product.id) == Decimal("6.00")

    def test_convert_twice_is_rejected(self, client, auth_headers, customer, make_product, stock_of):
        product = make_product(stock=10)
        quotation = BillService.create_bill("quotation", customer.id, _items((product, 4)))
        client.post(f'/bills/{quotation.id}/convert', headers=auth_headers)

        response = client.post(f'/bills/{quotation.id}/convert', headers=auth_headers)

        assert response.status_code == 400
        assert stock_of(product.id) == Decimal("6.00")

    def test_short_stock_keeps_quotation(self, db_session, customer, make_product, stock_of):
        product = make_product(stock=2)
        quotation = BillService.create_bill("quotation", customer.id, _items((product, 3)))

        with pytest.raises(InsufficientStock):
            BillService.convert_to_invoice(quotation.id)

        bill = db_session.get(Bill, quotation.id)
        assert bill.type == "quotation"
        assert bill.bill_no == "QUO-0001"
        assert stock_of(product.id) == Decimal("2.00")

    def test_convert_commits_every_item(self, db_session, customer, make_product, stock_row):
        first = make_product(stock=10)
        second = make_product(stock=5)
        quotation = BillService.create_bill("quotation", customer.id, _items((first, 3), (second, 2)))

        BillService.convert_to_invoice(quotation.id)

        first_stock = stock_row(first.id)
        second_stock = stock_row(second.id)
        assert first_stock.sold_qty == Decimal("3")
        assert second_stock.sold_qty == Decimal("2")
        assert first_stock.current_stock == Decimal("7.00")
        assert second_stock.current_stock == Decimal("3.00")
        _assert_ledger(first_stock)
        _assert_ledger(second_stock)

    def test_short_second_item_rolls_back_first(self, db_session, customer, make_product, stock_row):
        plenty = make_product(stock=10)
        short = make_product(stock=1)
        quotation = BillService.create_bill("quotation", customer.id, _items((plenty, 3), (short, 2)))

        with pytest.raises(InsufficientStock) as exc:
            BillService.convert_to_invoice(quotation.id)

        assert exc.value.product_id == short.id
        plenty_stock = stock_row(plenty.id)
        assert plenty_stock.sold_qty == Decimal("0")
        assert plenty_stock.current_stock == Decimal("10.00")
        assert db_session.get(Bill, quotation.id).type == "quotation"

    def test_missing_bill(self, db_session):
        with pytest.raises(NotFound):
            BillService.convert_to_invoice(12345)


class TestUpdateBill:
    def test_replacing_items_recomputes_totals(self, client, auth_headers, customer, make_product):
        product = make_product(stock=10)
        bill = BillService.create_bill("quotation", customer.id, _items((product, 1)))

        response = client.put(f'/bills/{bill.id}', headers=auth_headers, json={
            "remarks": "revised",
            "items": [{"productId": product.id, "quantity": 3, "unitPrice": "10.00", "taxPercent": 10}],
        })

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert len(data["items"]) == 1
        assert data["grandTotal"] == "33.00"
        assert data["remarks"] == "revised"
        assert BillItem.query.count() == 1

    def test_type_change_to_invoice_converts(self, db_session, customer, make_product, stock_of):
        product = make_product(stock=10)
        bill = BillService.create_bill("quotation", customer.id, _items((product, 2)))

        updated = BillService.update_bill(bill.id, {"type": "invoice"})

        assert updated.type == "invoice"
        assert updated.bill_no == "INV-0001"
        assert stock_of(product.id) == Decimal("8.00")

    def test_invoice_cannot_become_quotation(self, db_session, customer, make_product):
        product = make_product(stock=10)
        bill = BillService.create_bill("invoice", customer.id, _items((product, 2)))
        with pytest.raises(InvalidStateTransition):
            BillService.update_bill(bill.id, {"type": "quotation"})

    def test_same_type_is_a_no_op(self, db_session, customer, make_product, stock_of):
        product = make_product(stock=10)
        bill = BillService.create_bill("invoice", customer.id, _items((product, 2)))
        updated = BillService.update_bill(bill.id, {"type": "invoice"})
        assert updated.bill_no == "INV-0001"
        assert stock_of(product.id) == Decimal("8.00")

    def test_replacing_invoice_items_leaves_stock_as_committed(
        self, db_session, customer, make_product, stock_row, caplog
    ):
        product = make_product(stock=10)
        other = make_product(stock=10)
        bill = BillService.create_bill("invoice", customer.id, _items((product, 3)))
        PaymentService.add_payment(bill.id, "cash", 50)

        with caplog.at_level(logging.WARNING, logger="bills.bill_service"):
            updated = BillService.update_bill(bill.id, {"items": _items((product, 5), (other, 1))})

        assert updated.grand_total == Decimal("600.00")
        assert updated.payment_status == "partial"
        stock = stock_row(product.id)
        assert stock.sold_qty == Decimal("3")
        assert stock.current_stock == Decimal("7.00")
        assert stock_row(other.id).sold_qty == Decimal("0")
        assert "stock is not reconciled" in caplog.text
        assert "payment status partial is not recomputed" in caplog.text

    def test_remarks_can_be_cleared(self, db_session, customer, make_product):
        product = make_product(stock=10)
        bill = BillService.create_bill("quotation", customer.id, _items((product, 1)), remarks="call first")

        updated = BillService.update_bill(bill.id, {"remarks": ""})

        assert updated.remarks == ""


class TestDeleteAndRestore:
    def test_soft_delete_hides_and_restore_shows(self, client, auth_headers, customer, make_product):
        product = make_product(stock=10)
        bill = BillService.create_bill("quotation", customer.id, _items((product, 1)))

        assert client.delete(f'/bills/{bill.id}', headers=auth_headers).status_code == 200
        assert client.get(f'/bills/{bill.id}', headers=auth_headers).status_code == 404
        assert client.get('/bills/', headers=auth_headers).get_json()["total"] == 0

        assert client.post(f'/bills/{bill.id}/restore', headers=auth_headers).status_code == 200
        assert client.get(f'/bills/{bill.id}', headers=auth_headers).status_code == 200

    def test_hard_delete_removes_items_and_payments(self, client, auth_headers, customer, make_product):
        product = make_product(stock=10)
        bill = BillService.create_bill("invoice", customer.id, _items((product, 1)))
        client.post(f'/bills/{bill.id}/payment', headers=auth_headers, json={"paymentMode": "cash", "amountPaid": 50})

        response = client.delete(f'/bills/{bill.id}/hard', headers=auth_headers)

        assert response.status_code == 200
        assert Bill.query.count() == 0
        assert BillItem.query.count() == 0
        assert Payment.query.count() == 0


class TestListAndExport:
    def test_filters(self, client, auth_headers, customer, branch, make_product):
        product = make_product(stock=10)
        BillService.create_bill("quotation", customer.id, _items((product, 1)))
        BillService.create_bill("invoice", customer.id, _items((product, 1)))
        BillService.create_bill("invoice", None, _items((product, 1)), branch_id=branch.id)

        invoices = client.get('/bills/?type=invoice', headers=auth_headers).get_json()
        by_branch = client.get(f'/bills/?branchId={branch.id}', headers=auth_headers).get_json()

        assert invoices["total"] == 2
        assert by_branch["total"] == 1
        assert by_branch["data"][0]["branchId"] == branch.id

    def test_bad_filter_value(self, client, auth_headers):
        response = client.get('/bills/?type=receipt', headers=auth_headers)
        assert response.status_code == 400

    def test_export_returns_workbook(self, client, auth_headers, customer, make_product):
        product = make_product(stock=10)
        BillService.create_bill("invoice", customer.id, _items((product, 1)))

        response = client.get('/bills/export', headers=auth_headers)

        assert response.status_code == 200
        assert response.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        assert response.data[:2] == b'PK'
