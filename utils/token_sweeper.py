"""
Background sweep of expired refresh tokens.

Housekeeping only: validity checks already look at expires_at, so a missed
or failed sweep never lets an expired token through. One DELETE per run;
nothing here holds a lock a concurrent refresh needs.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)

_sweep_stop = threading.Event()
_sweep_thread: Optional[threading.Thread] = None


def sweep_expired_tokens(app) -> int:
    """Delete expired ledger rows once. Returns the number of rows removed."""
    with app.app_context():
        deleted = app.extensions["token_ledger"].delete_expired()
    if deleted > 0:
        logger.info("Cleaned up %d expired refresh tokens", deleted)
    return deleted


def _sweep_loop(app, interval_seconds: int) -> None:
    logger.info("Expired-token sweep started (every %ss)", interval_seconds)
    while not _sweep_stop.wait(interval_seconds):
        try:
            sweep_expired_tokens(app)
        except Exception:
            # keep sweeping; the next run retries
            logger.exception("Error cleaning up expired tokens")


def start_token_sweeper(app, interval_seconds: int = 3600) -> None:
    """Start the background sweep thread. Idempotent."""
    global _sweep_thread
    if _sweep_thread is not None:
        return
    _sweep_stop.clear()
    _sweep_thread = threading.Thread(
        target=_sweep_loop,
        args=(app, interval_seconds),
        daemon=True,
        name="token-sweeper",
    )
    _sweep_thread.start()


def stop_token_sweeper() -> None:
    global _sweep_thread
    _sweep_stop.set()
    if _sweep_thread is not None:
        # daemon thread; don't hold shutdown hostage
        _sweep_thread.join(timeout=2)
        if _sweep_thread.is_alive():
            logger.warning("Token sweeper still alive after timeout, continuing shutdown")
        _sweep_thread = None
    logger.info("Expired-token sweep stopped")
