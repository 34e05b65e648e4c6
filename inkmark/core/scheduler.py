"""
Deferred callbacks on the Qt event loop.
"""
from typing import Callable, Optional, Set

from PyQt5.QtCore import QObject, QTimer


class ScheduledCall:
    """Handle for a pending callback."""

    def __init__(self, timer: QTimer, on_done: Optional[Callable[["ScheduledCall"], None]] = None):
        self._timer = timer
        self._on_done = on_done
        self.done = False

    @property
    def pending(self) -> bool:
        return not self.done

    def cancel(self) -> None:
        if not self.done:
            self._finish()

    def _finish(self) -> None:
        self.done = True
        self._timer.stop()
        self._timer.deleteLater()
        if self._on_done is not None:
            self._on_done(self)


class QtScheduler(QObject):
    """
    Runs callbacks after a delay using single-shot QTimers.

    Anything that needs to wait for the render surface goes through a
    scheduler so tests can drive time by hand.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._calls: Set[ScheduledCall] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledCall:
        """
        Run callback once after delay_ms milliseconds.

        Returns:
            Handle that can cancel the call before it fires
        """
        timer = QTimer(self)
        timer.setSingleShot(True)
        call = ScheduledCall(timer, on_done=self._calls.discard)

        def _fire():
            if call.done:
                return
            call._finish()
            callback()

        timer.timeout.connect(_fire)
        self._calls.add(call)
        timer.start(max(0, int(delay_ms)))
        return call
