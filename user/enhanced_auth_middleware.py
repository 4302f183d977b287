import logging
from functools import wraps
from flask import request
from src.exceptions import Forbidden
from user.jwt_middleware import jwt_required, get_current_user
from user.roles import ROLES

logger = logging.getLogger(__name__)

# Action implied by the HTTP method when a route does not name one
METHOD_ACTIONS = {
    'GET': 'read',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete'
}


def require_permission_jwt(module, action=None):
    """JWT-based role check. The token's role must grant ``action`` (or the method's default)."""
    def decorator(f):
        @wraps(f)
        @jwt_required
        def decorated_function(*args, **kwargs):
            current_user = get_current_user()
            detected_action = action or METHOD_ACTIONS.get(request.method, 'read')

            allowed = ROLES.get(current_user['role'], ())
            if detected_action not in allowed:
                logger.warning(
                    "User %s (%s) denied %s on %s",
                    current_user['username'], current_user['role'], detected_action, module,
                )
                raise Forbidden()

            return f(*args, **kwargs)
        return decorated_function
    return decorator
