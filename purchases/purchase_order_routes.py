from flask import Blueprint, request, jsonify

from src.base_crud import page_args, paginate
from src.validators import parse_choice, raise_if_errors
from purchases.purchase_order import PO_STATUSES
from purchases.purchase_order_service import PurchaseOrderService
from user.enhanced_auth_middleware import require_permission_jwt
from user.jwt_middleware import current_username

bp = Blueprint("purchase_orders", __name__)


@bp.route("/", methods=["POST"])
@require_permission_jwt('purchase_orders', 'create')
def create_purchase_order():
    po = PurchaseOrderService.create_purchase_order(request.get_json(silent=True) or {}, current_username())
    return jsonify({
        "success": True,
        "message": "Purchase order created successfully",
        "data": po.to_dict(),
    }), 201


@bp.route("/", methods=["GET"])
@require_permission_jwt('purchase_orders', 'read')
def list_purchase_orders():
    page, limit = page_args(request.args)
    errors = []
    status = parse_choice(request.args.get("status"), "status", PO_STATUSES, errors, required=False)
    raise_if_errors(errors)
    query = PurchaseOrderService.list_query(status)
    return jsonify({"success": True, **paginate(query, page, limit, lambda po: po.to_dict(detail=False))})


# Must stay ahead of /<int:id>
@bp.route("/generate-ref", methods=["GET"])
@require_permission_jwt('purchase_orders', 'read')
def generate_ref():
    return jsonify({"success": True, "orderNumber": PurchaseOrderService.preview_order_number()})


@bp.route("/<int:id>", methods=["GET"])
@require_permission_jwt('purchase_orders', 'read')
def get_purchase_order(id):
    return jsonify({"success": True, "data": PurchaseOrderService.get_purchase_order(id).to_dict()})


@bp.route("/<int:id>", methods=["PUT"])
@require_permission_jwt('purchase_orders', 'update')
def update_purchase_order(id):
    po, receipt = PurchaseOrderService.update_purchase_order(
        id, request.get_json(silent=True) or {}, current_username()
    )
    body = {
        "success": True,
        "message": "Purchase order updated successfully",
        "data": po.to_dict(),
    }
    if receipt is not None:
        body["stockUpdate"] = receipt
    return jsonify(body)


@bp.route("/<int:id>", methods=["DELETE"])
@require_permission_jwt('purchase_orders', 'delete')
def soft_delete_purchase_order(id):
    PurchaseOrderService.soft_delete(id, current_username())
    return jsonify({"success": True, "message": "Purchase order soft deleted successfully"})


@bp.route("/<int:id>/restore", methods=["POST"])
@require_permission_jwt('purchase_orders', 'update')
def restore_purchase_order(id):
    po = PurchaseOrderService.restore(id, current_username())
    return jsonify({
        "success": True,
        "message": "Purchase order restored successfully",
        "data": po.to_dict(),
    })


@bp.route("/<int:id>/hard", methods=["DELETE"])
@require_permission_jwt('purchase_orders', 'delete')
def hard_delete_purchase_order(id):
    PurchaseOrderService.hard_delete(id)
    return jsonify({"success": True, "message": "Purchase order permanently deleted"})
