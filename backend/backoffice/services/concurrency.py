# Overview: Transaction helpers shared by the mutating flows (sales, orders, credit reviews).

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations and refresh the
    identity map from the locked rows.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the version_id
    columns turn a lost update into a StaleDataError instead.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation as one transaction, retrying on concurrency
    failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Any other exception rolls the session
    back and propagates, so a failed operation never leaves partial writes.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning(
                "Concurrent update conflict (attempt %d/%d): %s",
                attempt + 1, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
