"""
tronsign - automated multi-account classroom check-in.

  codec.py        -> scan text decoder
  eligibility.py  -> absence filtering
  executor.py     -> single check-in attempt / code probe
  dispatcher.py   -> concurrent fan-out across accounts
  bruteforce.py   -> numeric code recovery
  session_lock.py -> one code search per process
  service.py      -> scan and numeric check-in use cases
"""

__version__ = "1.0.0"

from .codec import decode
from .models import Account, AttemptRecord, CheckinPayload, Outcome, ScanPayload
from .service import SigninService, build_service

__all__ = [
    "decode",
    "Account",
    "AttemptRecord",
    "CheckinPayload",
    "Outcome",
    "ScanPayload",
    "SigninService",
    "build_service",
]
