from flask import Blueprint, request, jsonify

from src.base_crud import page_args, paginate
from src.validators import parse_int, raise_if_errors
from accounts.account_service import AccountService
from user.enhanced_auth_middleware import require_permission_jwt

bp = Blueprint("accounts", __name__)


@bp.route("/", methods=["GET"])
@require_permission_jwt('accounts', 'read')
def list_accounts():
    page, limit = page_args(request.args)
    return jsonify({"success": True, **paginate(AccountService.list_query(), page, limit)})


@bp.route("/reports/receivables", methods=["GET"])
@require_permission_jwt('accounts', 'read')
def receivables_report():
    errors = []
    customer_id = parse_int(request.args.get("customerId"), "customerId", errors, required=False)
    raise_if_errors(errors)
    return jsonify({"success": True, "data": AccountService.receivables_report(customer_id)})


# Accepts a customer id, or a branch id when no customer account matches
@bp.route("/<int:party_id>", methods=["GET"])
@require_permission_jwt('accounts', 'read')
def get_account(party_id):
    account, payments = AccountService.get_for_party(party_id)
    data = account.to_dict()
    data["payments"] = [
        {**payment.to_dict(), "billNo": payment.bill.bill_no if payment.bill else None}
        for payment in payments
    ]
    return jsonify({"success": True, "data": data})
