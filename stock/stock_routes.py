from flask import Blueprint, request, jsonify

from src.extensions import atomic
from src.exceptions import NotFound
from src.base_crud import page_args, paginate
from src.validators import parse_decimal, parse_int, parse_text, raise_if_errors
from stock.stock import Stock
from stock.stock_service import StockService
from user.enhanced_auth_middleware import require_permission_jwt
from user.jwt_middleware import current_username

bp = Blueprint("stock", __name__)


def _parse_stock_payload(data, errors):
    opening_stock = None
    if data.get("openingStock") is not None:
        opening_stock = parse_decimal(data["openingStock"], "openingStock", errors, minimum=0)
    location = parse_text(data.get("location"), "location", errors, max_length=255)
    return opening_stock, location


@bp.route("/", methods=["GET"])
@require_permission_jwt('stock', 'read')
def list_stock():
    page, limit = page_args(request.args)
    query = Stock.active()
    product_id = request.args.get("productId")
    if product_id:
        errors = []
        product_id = parse_int(product_id, "productId", errors)
        raise_if_errors(errors)
        query = query.filter(Stock.product_id == product_id)
    query = query.order_by(Stock.product_id)
    return jsonify({"success": True, **paginate(query, page, limit)})


@bp.route("/<int:id>", methods=["GET"])
@require_permission_jwt('stock', 'read')
def get_stock(id):
    stock = Stock.active().filter(Stock.id == id).first()
    if not stock:
        raise NotFound("Stock not found")
    return jsonify({"success": True, "data": stock.to_dict()})


# Sets opening stock; creates the stock row on first use
@bp.route("/", methods=["POST"])
@require_permission_jwt('stock', 'create')
def create_stock():
    data = request.get_json(silent=True) or {}
    errors = []
    product_id = parse_int(data.get("productId"), "productId", errors)
    opening_stock, location = _parse_stock_payload(data, errors)
    raise_if_errors(errors)

    with atomic():
        stock = StockService.set_opening_stock(product_id, opening_stock, location, current_username())
    return jsonify({
        "success": True,
        "message": "Stock created successfully",
        "data": stock.to_dict(),
    }), 201


@bp.route("/<int:id>", methods=["PUT"])
@require_permission_jwt('stock', 'update')
def update_stock(id):
    data = request.get_json(silent=True) or {}
    errors = []
    opening_stock, location = _parse_stock_payload(data, errors)
    raise_if_errors(errors)

    with atomic():
        stock = Stock.active().filter(Stock.id == id).with_for_update().first()
        if not stock:
            raise NotFound("Stock not found")
        stock = StockService.set_opening_stock(stock.product_id, opening_stock, location, current_username())
    return jsonify({
        "success": True,
        "message": "Stock updated successfully",
        "data": stock.to_dict(),
    })
