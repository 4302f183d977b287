import logging
from contextlib import contextmanager

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)


@contextmanager
def atomic():
    """Run a block as one unit of work: commit on success, roll back everything on error."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.debug("Transaction rolled back", exc_info=True)
        raise
