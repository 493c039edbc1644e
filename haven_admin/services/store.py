import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from haven_admin.core.error_handling import StoreError

logger = logging.getLogger(__name__)


def store_message(error: SQLAlchemyError) -> str:
    """The driver's own message when there is one, without SQLAlchemy's statement dump."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


def commit_or_raise(db: Session, action: str) -> None:
    """
    Commit the unit of work, or roll all of it back and raise StoreError.

    Args:
        db: Database session holding the pending writes
        action: Short description for the log line and the error notice
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {store_message(e)}")
        raise StoreError(f"Failed to {action}: {store_message(e)}")
