from functools import wraps

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from bingo import db
from .errors import BingoError, PersistenceFailure


def transactional(func):
    """Commit the session when ``func`` returns, roll back when it raises.

    Store errors are re-raised as PersistenceFailure so callers know a retry
    of the whole operation is safe. Domain errors propagate unchanged.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
            db.session.commit()
            return result
        except BingoError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[store-fail] {func.__name__}: {exc}")
            raise PersistenceFailure(f"Store operation failed in {func.__name__}, retry the request") from exc

    return wrapper
