from contextlib import contextmanager
import logging
from models import db

@contextmanager
def transactional(message="DB transaction failed", session=None, expected=()):
    """Context manager to wrap a database transaction.

    Exceptions listed in ``expected`` still roll back but are not logged as
    errors; the caller reports them.
    """
    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception as e:
        if not isinstance(e, expected):
            logging.error(f"{message}: %s", e, exc_info=True)
        session.rollback()
        raise
