from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    MALFORMED = "Malformed"
    NO_COOKIE = "NoCookie"
    TRANSPORT = "Transport"
    INVALID_PAYLOAD = "InvalidPayload"
    SEARCH_IN_PROGRESS = "SearchInProgress"
    NO_ELIGIBLE_ACCOUNTS = "NoEligibleAccounts"
    NO_ACTIVE_TASK = "NoActiveTask"
    EXHAUSTED = "Exhausted"


class SigninError(Exception):
    """
    Base class for session- and search-level failures.
    Per-account failures never raise; they become failure records instead.
    """
    kind: ErrorKind = ErrorKind.TRANSPORT
    retryable: bool = False

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def to_dict(self):
        return {"error": str(self), "kind": self.kind.value, "retryable": self.retryable}


class NoCookieError(SigninError):
    kind = ErrorKind.NO_COOKIE


class TransportError(SigninError):
    kind = ErrorKind.TRANSPORT


class FeedError(TransportError):
    """Rollcall feed answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SearchInProgressError(SigninError):
    kind = ErrorKind.SEARCH_IN_PROGRESS
    retryable = True


class NoEligibleAccountsError(SigninError):
    kind = ErrorKind.NO_ELIGIBLE_ACCOUNTS


class NoActiveTaskError(SigninError):
    kind = ErrorKind.NO_ACTIVE_TASK


class ExhaustedError(SigninError):
    kind = ErrorKind.EXHAUSTED

    def __init__(self, message: str, probes_sent: int = 0):
        super().__init__(message)
        self.probes_sent = probes_sent
