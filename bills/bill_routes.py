import io
from datetime import datetime

import pandas as pd
from flask import Blueprint, request, jsonify, send_file

from src.base_crud import page_args, paginate
from bills.bill import PAYMENT_STATUSES
from bills.bill_service import BillService
from payments.payment_service import PaymentService
from user.enhanced_auth_middleware import require_permission_jwt
from user.jwt_middleware import current_username

bp = Blueprint("bills", __name__)


# -------------------- CREATE BILL --------------------
@bp.route("/", methods=["POST"])
@require_permission_jwt('bills', 'create')
def create_bill():
    data = request.get_json(silent=True) or {}
    bill = BillService.create_bill(
        data.get("type"),
        data.get("customerId"),
        data.get("items"),
        remarks=data.get("remarks"),
        actor=current_username(),
        branch_id=data.get("branchId"),
    )
    return jsonify({
        "success": True,
        "message": "Bill created successfully",
        "data": bill.to_dict(),
    }), 201


# -------------------- LIST BILLS --------------------
@bp.route("/", methods=["GET"])
@require_permission_jwt('bills', 'read')
def list_bills():
    page, limit = page_args(request.args)
    query = BillService.list_query(
        bill_type=request.args.get("type"),
        payment_status=request.args.get("paymentStatus"),
        customer_id=request.args.get("customerId"),
        branch_id=request.args.get("branchId"),
    )
    return jsonify({"success": True, **paginate(query, page, limit, lambda b: b.to_dict(detail=False))})


# -------------------- EXPORT BILLS --------------------
@bp.route("/export", methods=["GET"])
@require_permission_jwt('bills', 'read')
def export_bills():
    rows = BillService.export_rows()
    df = pd.DataFrame(rows)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name='All Bills')
        # One sheet per payment status
        for status in PAYMENT_STATUSES:
            subset = df[df["Payment Status"] == status] if not df.empty else df
            subset.to_excel(writer, index=False, sheet_name=status.capitalize())
    output.seek(0)

    filename = f"bills_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return send_file(
        output,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name=filename
    )


# -------------------- GET BILL --------------------
@bp.route("/<int:id>", methods=["GET"])
@require_permission_jwt('bills', 'read')
def get_bill(id):
    return jsonify({"success": True, "data": BillService.get_bill(id).to_dict()})


# -------------------- UPDATE BILL --------------------
@bp.route("/<int:id>", methods=["PUT"])
@require_permission_jwt('bills', 'update')
def update_bill(id):
    bill = BillService.update_bill(id, request.get_json(silent=True) or {}, current_username())
    return jsonify({
        "success": True,
        "message": "Bill updated successfully",
        "data": bill.to_dict(),
    })


# -------------------- CONVERT QUOTATION --------------------
@bp.route("/<int:id>/convert", methods=["POST"])
@require_permission_jwt('bills', 'update')
def convert_bill(id):
    bill = BillService.convert_to_invoice(id, current_username())
    return jsonify({
        "success": True,
        "message": "Quotation converted to invoice",
        "data": bill.to_dict(),
    })


# -------------------- PAYMENTS --------------------
@bp.route("/<int:id>/payment", methods=["POST"])
@require_permission_jwt('bills', 'update')
def add_payment(id):
    data = request.get_json(silent=True) or {}
    result = PaymentService.add_payment(
        id,
        data.get("paymentMode"),
        data.get("amountPaid"),
        transaction_id=data.get("transactionId"),
        actor=current_username(),
    )
    return jsonify({
        "success": True,
        "message": "Payment added successfully",
        "paymentStatus": result["paymentStatus"],
        "data": result["payment"].to_dict(),
    })


@bp.route("/<int:id>/payments", methods=["GET"])
@require_permission_jwt('bills', 'read')
def list_payments(id):
    BillService.get_bill(id)
    payments = PaymentService.list_payments(id)
    return jsonify({"success": True, "data": [p.to_dict() for p in payments]})


# -------------------- DELETE / RESTORE --------------------
@bp.route("/<int:id>", methods=["DELETE"])
@require_permission_jwt('bills', 'delete')
def soft_delete_bill(id):
    BillService.soft_delete(id, current_username())
    return jsonify({"success": True, "message": "Bill soft deleted successfully"})


@bp.route("/<int:id>/restore", methods=["POST"])
@require_permission_jwt('bills', 'update')
def restore_bill(id):
    bill = BillService.restore(id, current_username())
    return jsonify({
        "success": True,
        "message": "Bill restored successfully",
        "data": bill.to_dict(),
    })


@bp.route("/<int:id>/hard", methods=["DELETE"])
@require_permission_jwt('bills', 'delete')
def hard_delete_bill(id):
    BillService.hard_delete(id)
    return jsonify({"success": True, "message": "Bill permanently deleted"})
