import logging
from typing import Callable, Optional

from leadgen.models.state import ProgressUpdate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressReporter:
    """
    Emits progress updates for one run and keeps the percentage monotonic.

    Updates are synchronous: nothing here awaits, so concurrent asyncio tasks
    cannot interleave inside a read-modify-write of the counter.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._progress = 0.0
        self.history = []

    @property
    def progress(self) -> float:
        return self._progress

    def report(self, status: str, progress: Optional[float] = None) -> ProgressUpdate:
        """
        Emit ``status`` at ``progress``, never lower than the last value sent.
        Without ``progress`` the current value is repeated.
        """
        if progress is not None:
            self._progress = max(self._progress, min(100.0, float(progress)))
        update = ProgressUpdate(status=status, progress=self._progress)
        self.history.append(update)
        if self._callback is not None:
            try:
                self._callback(update)
            except Exception:
                logger.exception("Progress callback failed")
        return update

    def advance(self, status: str, amount: float) -> ProgressUpdate:
        """Move the counter forward by ``amount`` and emit ``status``."""
        return self.report(status, self._progress + max(0.0, amount))

    def status(self, status: str) -> None:
        """Emit ``status`` without moving the counter; used as a retry notifier."""
        self.report(status)
