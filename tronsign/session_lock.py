import logging
import threading
from contextlib import contextmanager
from typing import Optional

from .errors import SearchInProgressError

logger = logging.getLogger("tronsign.lock")


class SessionLock:
    """
    Process-wide guard that admits one code search at a time.
    Never blocks: a second caller gets False (or SearchInProgressError from hold()).
    Only the thread that acquired the guard can release it; prefer hold().
    """

    def __init__(self):
        self._state = threading.Lock()
        self._owner: Optional[int] = None

    def try_acquire(self) -> bool:
        with self._state:
            if self._owner is None:
                self._owner = threading.get_ident()
                return True
        logger.info("Code search already running; refusing new search")
        return False

    def release(self) -> bool:
        """Returns False (and changes nothing) unless the caller holds the guard."""
        with self._state:
            if self._owner != threading.get_ident():
                if self._owner is not None:
                    logger.warning("Ignoring release from a thread that does not hold the search lock")
                return False
            self._owner = None
            return True

    @property
    def held(self) -> bool:
        return self._owner is not None

    @contextmanager
    def hold(self):
        if not self.try_acquire():
            raise SearchInProgressError(
                "A numeric code search is already running. Retry later or supply the code explicitly."
            )
        try:
            yield self
        finally:
            self.release()


SESSION_LOCK = SessionLock()
