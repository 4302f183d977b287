import jwt
from datetime import datetime, timedelta
from flask import current_app
import secrets


def _settings():
    config = current_app.config
    return {
        'access_secret': config['JWT_SECRET_KEY'],
        'refresh_secret': config['REFRESH_SECRET_KEY'],
        'algorithm': config.get('JWT_ALGORITHM', 'HS256'),
        'access_days': config['ACCESS_TOKEN_EXPIRATION_DAYS'],
        'refresh_days': config['REFRESH_TOKEN_EXPIRATION_DAYS'],
    }


def _access_payload(user, now, days):
    return {
        'user_id': user.id,
        'username': user.username,
        'role': user.role,
        'token_type': 'access',
        'exp': now + timedelta(days=days),
        'iat': now,
        'jti': secrets.token_hex(16)  # Unique token ID
    }


def generate_tokens(user):
    """Generate both access and refresh tokens for user"""
    settings = _settings()
    now = datetime.utcnow()

    access_token = jwt.encode(
        _access_payload(user, now, settings['access_days']),
        settings['access_secret'],
        algorithm=settings['algorithm'],
    )

    refresh_payload = {
        'user_id': user.id,
        'username': user.username,
        'token_type': 'refresh',
        'exp': now + timedelta(days=settings['refresh_days']),
        'iat': now,
        'jti': secrets.token_hex(16)
    }
    refresh_token = jwt.encode(refresh_payload, settings['refresh_secret'], algorithm=settings['algorithm'])

    return {
        'access_token': access_token,
        'refresh_token': refresh_token,
        'access_expires_in': settings['access_days'] * 24 * 60 * 60,  # seconds
        'refresh_expires_in': settings['refresh_days'] * 24 * 60 * 60,  # seconds
        'token_type': 'Bearer'
    }


def _decode(token, secret, token_type):
    try:
        payload = jwt.decode(token, secret, algorithms=[_settings()['algorithm']])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get('token_type') != token_type:
        return None
    return payload


def decode_access_token(token):
    """Decode and validate access token"""
    return _decode(token, _settings()['access_secret'], 'access')


def decode_refresh_token(token):
    """Decode and validate refresh token"""
    return _decode(token, _settings()['refresh_secret'], 'refresh')


def refresh_access_token(refresh_token):
    """Generate new access token using refresh token"""
    payload = decode_refresh_token(refresh_token)
    if not payload:
        return None

    from src.extensions import db
    from user.user import User
    user = db.session.get(User, payload['user_id'])
    if not user or user.is_deleted:
        return None

    settings = _settings()
    access_payload = _access_payload(user, datetime.utcnow(), settings['access_days'])
    return {
        'access_token': jwt.encode(access_payload, settings['access_secret'], algorithm=settings['algorithm']),
        'expires_in': settings['access_days'] * 24 * 60 * 60,
        'token_type': 'Bearer'
    }


def get_token_from_header(request):
    """Extract token from Authorization header"""
    auth_header = request.headers.get('Authorization')
    if auth_header and auth_header.startswith('Bearer '):
        return auth_header.split(' ')[1]
    return None
