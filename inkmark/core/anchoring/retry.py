"""
Bounded retry chains that know when they have been superseded.
"""
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class GenerationCounter:
    """Monotonic request generation; only the latest one is current."""

    def __init__(self):
        self.value = 0

    def next(self) -> int:
        self.value += 1
        return self.value

    def is_current(self, generation: int) -> bool:
        return generation == self.value


class RetryTask:
    """
    Calls ``attempt`` until it returns True or the attempts run out.

    The first attempt runs synchronously in ``start()``. Later attempts are
    scheduled ``delay_ms`` apart on the scheduler. Before every attempt the
    task checks that it has not been cancelled and that ``is_current`` still
    holds; a stale task stops without calling ``attempt`` or
    ``on_exhausted``.
    """

    def __init__(self, scheduler, attempt: Callable[[], bool],
                 max_attempts: int = 5, delay_ms: int = 200,
                 is_current: Optional[Callable[[], bool]] = None,
                 on_exhausted: Optional[Callable[[], None]] = None,
                 name: str = "retry"):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.scheduler = scheduler
        self._attempt = attempt
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms
        self._is_current = is_current
        self._on_exhausted = on_exhausted
        self.name = name

        self._attempts = 0
        self._cancelled = False
        self._succeeded = False
        self._finished = False
        self._pending = None

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def succeeded(self) -> bool:
        return self._succeeded

    @property
    def active(self) -> bool:
        return not (self._finished or self._cancelled)

    def start(self) -> "RetryTask":
        self._run()
        return self

    def cancel(self) -> None:
        if self._cancelled or self._finished:
            return
        self._cancelled = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        logger.debug("%s cancelled after %d attempts", self.name, self._attempts)

    def _stale(self) -> bool:
        if self._cancelled:
            return True
        if self._is_current is not None and not self._is_current():
            logger.debug("%s superseded, dropping", self.name)
            self._finished = True
            return True
        return False

    def _run(self) -> None:
        self._pending = None
        if self._finished or self._stale():
            return

        self._attempts += 1
        if self._attempt():
            self._succeeded = True
            self._finished = True
            return

        if self._attempts >= self.max_attempts:
            self._finished = True
            logger.debug("%s gave up after %d attempts", self.name, self._attempts)
            if self._on_exhausted is not None:
                self._on_exhausted()
            return

        self._pending = self.scheduler.call_later(self.delay_ms, self._run)
