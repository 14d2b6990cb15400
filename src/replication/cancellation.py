"""
Cooperative cancellation for replication runs.

The orchestrator checks the token between tables and the copier checks it
after every committed batch, so an interrupted run keeps every batch that
was already committed.
"""

import logging
import signal
import threading

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation; later calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()
            logger.warning(f"Cancellation requested: {reason}")

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses; True if cancelled."""
        return self._event.wait(timeout)


def install_signal_handlers(
    token: CancellationToken,
    signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM),
) -> dict:
    """
    Trip ``token`` on the given signals.

    The first signal cancels cooperatively; a second SIGINT falls through
    to the default handler so an operator can still force an exit.

    Returns:
        Previous handlers keyed by signal, for ``restore_signal_handlers``
    """
    previous = {}

    def handler(signum, frame):
        name = signal.Signals(signum).name
        if token.cancelled and signum == signal.SIGINT:
            signal.default_int_handler(signum, frame)
        token.cancel(f"received {name}")

    for sig in signals:
        previous[sig] = signal.signal(sig, handler)

    return previous


def restore_signal_handlers(previous: dict) -> None:
    """Reinstall handlers returned by ``install_signal_handlers``."""
    for sig, handler in previous.items():
        signal.signal(sig, handler)
