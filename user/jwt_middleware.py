from functools import wraps
from flask import request, g
from src.exceptions import Unauthorized
from user.jwt_utils import decode_access_token, get_token_from_header


def jwt_required(f):
    """JWT authentication decorator for access tokens"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_token_from_header(request)
        if not token:
            raise Unauthorized('No token provided')

        payload = decode_access_token(token)
        if not payload:
            raise Unauthorized('Invalid or expired token')

        # Store user info in g for use in routes
        g.current_user = {
            'user_id': payload['user_id'],
            'username': payload['username'],
            'role': payload['role'],
            'token_id': payload.get('jti')
        }

        return f(*args, **kwargs)
    return decorated_function


def get_current_user():
    return g.get('current_user')


def current_username():
    """Name recorded in created_by / updated_by columns."""
    user = get_current_user()
    return user['username'] if user else 'system'
