"""Shared CRUD for the reference-data entities (customers, products, ...).

Each model lists its ``WRITABLE_FIELDS`` and ``REQUIRED_FIELDS``; payload keys
are the camelCase column names.
"""
import logging

from flask import Blueprint, request, jsonify
from sqlalchemy import Integer, Numeric, String, Boolean

from src.extensions import db, atomic
from src.exceptions import NotFound
from src.validators import parse_decimal, parse_int, parse_text, raise_if_errors
from models.common_fields import camel_case
from user.enhanced_auth_middleware import require_permission_jwt
from user.jwt_middleware import current_username

logger = logging.getLogger(__name__)


def page_args(args, default_limit=10):
    try:
        page = max(1, int(args.get("page", 1)))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = max(1, int(args.get("limit", default_limit)))
    except (TypeError, ValueError):
        limit = default_limit
    return page, limit


def paginate(query, page, limit, serialize=None):
    total = query.order_by(None).count()
    rows = query.limit(limit).offset((page - 1) * limit).all()
    serialize = serialize or (lambda row: row.to_dict())
    return {
        "data": [serialize(row) for row in rows],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit,
    }


class BaseCrud:
    def __init__(self, model, entity_name):
        self.model = model
        self.entity_name = entity_name

    def _values(self, data, creating):
        errors = []
        values = {}
        columns = self.model.__table__.columns
        for field in self.model.WRITABLE_FIELDS:
            key = camel_case(field)
            if key not in data:
                continue
            raw = data[key]
            column_type = columns[field].type
            if raw is None or raw == "":
                values[field] = None
            elif isinstance(column_type, Boolean):
                values[field] = bool(raw)
            elif isinstance(column_type, Integer):
                values[field] = parse_int(raw, key, errors, required=False)
            elif isinstance(column_type, Numeric):
                values[field] = parse_decimal(raw, key, errors)
            elif isinstance(column_type, String):
                values[field] = parse_text(raw, key, errors, max_length=column_type.length)
            else:
                values[field] = parse_text(raw, key, errors)

        for field in self.model.REQUIRED_FIELDS:
            if (creating or field in values) and values.get(field) is None:
                errors.append({"field": camel_case(field), "message": "is required"})
        raise_if_errors(errors)
        return values

    def list_query(self):
        return self.model.active().order_by(self.model.created_at.desc(), self.model.id.desc())

    def get(self, record_id):
        record = self.model.active().filter(self.model.id == record_id).first()
        if not record:
            raise NotFound(f"{self.entity_name} not found")
        return record

    def create(self, data, actor="system"):
        values = self._values(data or {}, creating=True)
        with atomic():
            record = self.model(created_by=actor, **values)
            db.session.add(record)
        logger.info("%s %s created by %s", self.entity_name, record.id, actor)
        return record

    def update(self, record_id, data, actor="system"):
        values = self._values(data or {}, creating=False)
        with atomic():
            record = self.get(record_id)
            for field, value in values.items():
                setattr(record, field, value)
            record.updated_by = actor
        return record

    def soft_delete(self, record_id, actor="system"):
        with atomic():
            record = self.get(record_id)
            record.soft_delete(actor)
        return record

    def restore(self, record_id, actor="system"):
        with atomic():
            record = db.session.get(self.model, record_id)
            if not record:
                raise NotFound(f"{self.entity_name} not found")
            record.restore()
            record.updated_by = actor
        return record

    def hard_delete(self, record_id):
        with atomic():
            record = db.session.get(self.model, record_id)
            if not record:
                raise NotFound(f"{self.entity_name} not found")
            db.session.delete(record)
        logger.info("%s %s permanently deleted", self.entity_name, record_id)
        return record_id


def crud_blueprint(name, crud):
    """Blueprint with the list/get/create/update/delete/restore routes for one entity."""
    bp = Blueprint(name, __name__)
    entity = crud.entity_name

    @bp.route("/", methods=["GET"])
    @require_permission_jwt(name, 'read')
    def list_records():
        page, limit = page_args(request.args)
        return jsonify({"success": True, **paginate(crud.list_query(), page, limit)})

    @bp.route("/<int:id>", methods=["GET"])
    @require_permission_jwt(name, 'read')
    def get_record(id):
        return jsonify({"success": True, "data": crud.get(id).to_dict()})

    @bp.route("/", methods=["POST"])
    @require_permission_jwt(name, 'create')
    def create_record():
        record = crud.create(request.get_json(silent=True), current_username())
        return jsonify({
            "success": True,
            "message": f"{entity} created successfully",
            "data": record.to_dict(),
        }), 201

    @bp.route("/<int:id>", methods=["PUT"])
    @require_permission_jwt(name, 'update')
    def update_record(id):
        record = crud.update(id, request.get_json(silent=True), current_username())
        return jsonify({
            "success": True,
            "message": f"{entity} updated successfully",
            "data": record.to_dict(),
        })

    @bp.route("/<int:id>", methods=["DELETE"])
    @require_permission_jwt(name, 'delete')
    def soft_delete_record(id):
        crud.soft_delete(id, current_username())
        return jsonify({"success": True, "message": f"{entity} soft deleted successfully"})

    @bp.route("/<int:id>/restore", methods=["POST"])
    @require_permission_jwt(name, 'update')
    def restore_record(id):
        record = crud.restore(id, current_username())
        return jsonify({
            "success": True,
            "message": f"{entity} restored successfully",
            "data": record.to_dict(),
        })

    @bp.route("/<int:id>/hard", methods=["DELETE"])
    @require_permission_jwt(name, 'delete')
    def hard_delete_record(id):
        crud.hard_delete(id)
        return jsonify({"success": True, "message": f"{entity} permanently deleted"})

    return bp
