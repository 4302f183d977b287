class AppError(Exception):
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class InsufficientStock(AppError):
    status_code = 400

    def __init__(self, product_id, available=None, requested=None):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        message = f"Insufficient stock for product {product_id}"
        if available is not None and requested is not None:
            message += f". Available: {available}, Requested: {requested}"
        super().__init__(message, [{"field": "productId", "message": message}])


class InvalidStateTransition(AppError):
    status_code = 400
    default_message = "Invalid state transition"


class InvalidOperation(InvalidStateTransition):
    default_message = "Operation not allowed"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ConstraintViolation(AppError):
    status_code = 400
    default_message = "Duplicate entry"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access Forbidden"
