import logging
from src.extensions import db, atomic
from user.user import User

logger = logging.getLogger(__name__)


def create_admin_user(username='admin', password='admin123'):
    """Create the admin account if it does not exist yet. Returns (user, created)."""
    existing = User.query.filter_by(username=username).first()
    if existing:
        logger.info("Admin user %s already exists", username)
        return existing, False

    with atomic():
        admin = User(username=username, role='admin', created_by='system')
        admin.set_password(password)
        db.session.add(admin)

    logger.info("Admin user %s created", username)
    return admin, True
