"""Request payload helpers.

Routes validate by hand and collect field errors in the
``[{"field": ..., "message": ...}]`` shape returned to clients.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation as DecimalError, ROUND_HALF_UP

from src.exceptions import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_decimal(value, field, errors, minimum=None, maximum=None, exclusive_minimum=False, default=None):
    if value is None or value == "":
        if default is not None:
            return money(default)
        errors.append({"field": field, "message": "is required"})
        return None
    if isinstance(value, bool):
        errors.append({"field": field, "message": "must be a number"})
        return None
    try:
        # Stored columns keep two decimal places; bounds apply to the stored value
        number = money(str(value))
    except (DecimalError, ValueError):
        errors.append({"field": field, "message": "must be a number"})
        return None
    if not number.is_finite():
        errors.append({"field": field, "message": "must be a number"})
        return None
    if minimum is not None:
        if exclusive_minimum and number <= minimum:
            errors.append({"field": field, "message": f"must be greater than {minimum}"})
            return None
        if not exclusive_minimum and number < minimum:
            errors.append({"field": field, "message": f"must be at least {minimum}"})
            return None
    if maximum is not None and number > maximum:
        errors.append({"field": field, "message": f"must be at most {maximum}"})
        return None
    return number


def parse_int(value, field, errors, required=True):
    if value is None or value == "":
        if required:
            errors.append({"field": field, "message": "is required"})
        return None
    if isinstance(value, bool):
        errors.append({"field": field, "message": "must be an integer id"})
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append({"field": field, "message": "must be an integer id"})
        return None


def parse_choice(value, field, choices, errors, required=True):
    if value is None:
        if required:
            errors.append({"field": field, "message": "is required"})
        return None
    if value not in choices:
        errors.append({"field": field, "message": f"must be one of {', '.join(choices)}"})
        return None
    return value


def parse_date(value, field, errors):
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value if not isinstance(value, datetime) else value.date()
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        errors.append({"field": field, "message": "must be in YYYY-MM-DD format"})
        return None


def parse_text(value, field, errors, max_length=None):
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append({"field": field, "message": "must be a string"})
        return None
    if max_length is not None and len(value) > max_length:
        errors.append({"field": field, "message": f"must be at most {max_length} characters"})
        return None
    return value


def raise_if_errors(errors, message="Validation failed"):
    if errors:
        raise ValidationError(message, errors)
