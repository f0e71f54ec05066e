"""
Atomic scope shared by every operation that writes stock.

Header inserts, detail inserts and stock mutations for one movement run
inside a single `atomic_scope`; the scope either commits all of them or
rolls every one back before the error reaches the caller.
"""
import logging
from contextlib import contextmanager

import sentry_sdk

from stock_ledger.exceptions import LedgerError, InconsistentReversalError
from stock_ledger.blueprints.metrics import ledger_operations_total

logger = logging.getLogger(__name__)


@contextmanager
def atomic_scope(session, operation: str):
    """
    Run the block as one unit of work on `session`.

    Args:
        session: SQLAlchemy session (must not hold uncommitted work)
        operation: Label used for logs and metrics, e.g. 'exit.create'

    Yields:
        The same session.
    """
    try:
        yield session
        session.flush()
        session.commit()

    except InconsistentReversalError as e:
        session.rollback()
        ledger_operations_total.labels(operation=operation, outcome='inconsistent').inc()
        logger.error(f"[LEDGER] {operation} refused, ledger diverged from history: {e.message}")
        sentry_sdk.capture_exception(e)
        raise

    except LedgerError as e:
        session.rollback()
        ledger_operations_total.labels(operation=operation, outcome='rejected').inc()
        logger.info(f"[LEDGER] {operation} rejected [{e.status_code}]: {e.message}")
        raise

    except Exception:
        session.rollback()
        ledger_operations_total.labels(operation=operation, outcome='error').inc()
        logger.exception(f"[LEDGER] {operation} failed, transaction rolled back")
        raise

    ledger_operations_total.labels(operation=operation, outcome='committed').inc()
    _invalidate_stock_cache()


def _invalidate_stock_cache():
    """Gracefully attempt to invalidate the cached stock listing."""
    try:
        from stock_ledger.services.cache_service import get_cache
        get_cache().invalidate_module('stock')
    except RuntimeError as e:
        # No app context or cache not initialized (CLI scripts)
        logger.debug(f"[CACHE] Stock invalidation skipped: {e}")
