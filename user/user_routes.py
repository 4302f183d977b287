import logging
from flask import Blueprint, request, jsonify
from src.extensions import db, atomic
from src.exceptions import NotFound, Unauthorized, ValidationError
from src.base_crud import page_args, paginate
from user.user import User
from user.roles import ROLES
from user.jwt_utils import generate_tokens, refresh_access_token
from user.jwt_middleware import jwt_required, get_current_user, current_username
from user.enhanced_auth_middleware import require_permission_jwt

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)
bp = Blueprint('users', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        raise ValidationError('Username and password required')

    user = User.active().filter_by(username=username).first()
    if not user or not user.check_password(password):
        logger.warning("Failed login for %s", username)
        raise Unauthorized('Invalid credentials')

    tokens = generate_tokens(user)
    logger.info("User %s logged in", user.username)
    return jsonify({
        'success': True,
        'access_token': tokens['access_token'],
        'refresh_token': tokens['refresh_token'],
        'access_expires_in': tokens['access_expires_in'],
        'refresh_expires_in': tokens['refresh_expires_in'],
        'token_type': tokens['token_type'],
        'user': user.to_dict()
    }), 200


@auth_bp.route('/refresh', methods=['POST'])
def refresh_token():
    """Refresh access token using refresh token"""
    data = request.get_json(silent=True) or {}
    refresh_token = data.get('refresh_token')
    if not refresh_token:
        raise ValidationError('Refresh token required')

    result = refresh_access_token(refresh_token)
    if not result:
        raise Unauthorized('Invalid or expired refresh token')

    return jsonify({
        'success': True,
        'access_token': result['access_token'],
        'expires_in': result['expires_in'],
        'token_type': result['token_type']
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required
def me():
    current_user = get_current_user()
    user = db.session.get(User, current_user['user_id'])
    if not user or user.is_deleted:
        raise Unauthorized('User not found')
    return jsonify({'success': True, 'user': {**user.to_dict(), 'permissions': list(ROLES.get(user.role, ()))}})


def _parse_user(data, creating):
    errors = []
    username = data.get('username')
    password = data.get('password')
    role = data.get('role')

    if creating or 'username' in data:
        if not isinstance(username, str) or len(username) < 3:
            errors.append({'field': 'username', 'message': 'must be at least 3 characters long'})
    if creating or 'password' in data:
        if not isinstance(password, str) or len(password) < 6:
            errors.append({'field': 'password', 'message': 'must be at least 6 characters long'})
    if creating or 'role' in data:
        if role not in ROLES:
            errors.append({'field': 'role', 'message': f"must be one of {', '.join(ROLES)}"})
    if errors:
        raise ValidationError(errors=errors)
    return username, password, role


@bp.route('/', methods=['GET'])
@require_permission_jwt('users', 'manageUsers')
def list_users():
    page, limit = page_args(request.args)
    query = User.active().order_by(User.id)
    return jsonify({'success': True, **paginate(query, page, limit)})


@bp.route('/<int:id>', methods=['GET'])
@require_permission_jwt('users', 'manageUsers')
def get_user(id):
    user = User.active().filter(User.id == id).first()
    if not user:
        raise NotFound('User not found')
    return jsonify({'success': True, 'data': user.to_dict()})


@bp.route('/', methods=['POST'])
@require_permission_jwt('users', 'manageUsers')
def create_user():
    data = request.get_json(silent=True) or {}
    username, password, role = _parse_user(data, creating=True)

    if User.query.filter_by(username=username).first():
        raise ValidationError(errors=[{'field': 'username', 'message': f'Username "{username}" already exists'}])

    with atomic():
        user = User(username=username, email=data.get('email'), role=role, created_by=current_username())
        user.set_password(password)
        db.session.add(user)

    logger.info("User %s (%s) created by %s", user.username, user.role, current_username())
    return jsonify({'success': True, 'message': 'User created successfully', 'data': user.to_dict()}), 201


@bp.route('/<int:id>', methods=['PUT'])
@require_permission_jwt('users', 'manageUsers')
def update_user(id):
    data = request.get_json(silent=True) or {}
    username, password, role = _parse_user(data, creating=False)

    with atomic():
        user = User.active().filter(User.id == id).first()
        if not user:
            raise NotFound('User not found')
        if 'username' in data:
            user.username = username
        if 'email' in data:
            user.email = data.get('email')
        if 'role' in data:
            user.role = role
        if 'password' in data:
            user.set_password(password)
        user.updated_by = current_username()

    return jsonify({'success': True, 'message': 'User updated successfully', 'data': user.to_dict()})


@bp.route('/<int:id>', methods=['DELETE'])
@require_permission_jwt('users', 'manageUsers')
def delete_user(id):
    if id == get_current_user()['user_id']:
        raise ValidationError('You cannot delete your own account')
    with atomic():
        user = User.active().filter(User.id == id).first()
        if not user:
            raise NotFound('User not found')
        user.soft_delete(current_username())
    return jsonify({'success': True, 'message': 'User soft deleted successfully'})
