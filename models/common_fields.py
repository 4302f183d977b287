from datetime import date, datetime
from decimal import Decimal

from src.extensions import db


def camel_case(name):
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def serialize_value(value):
    """Convert a column value to its JSON representation."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class AuditMixin:
    """Who/when columns shared by every mutable entity, plus soft-delete support."""

    created_by = db.Column(db.String(80), nullable=False, default="system")
    updated_by = db.Column(db.String(80), nullable=True)
    deleted_by = db.Column(db.String(80), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)
    # Set => soft-deleted
    deleted_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def active(cls):
        return cls.query.filter(cls.deleted_at.is_(None))

    def soft_delete(self, actor=None):
        self.deleted_at = datetime.utcnow()
        self.deleted_by = actor

    def restore(self):
        self.deleted_at = None
        self.deleted_by = None

    def to_dict(self):
        return {
            camel_case(column.name): serialize_value(getattr(self, column.key))
            for column in self.__table__.columns
        }
