"""
Collaborator interfaces consumed by the signin core, plus in-memory and
YAML-roster implementations used by the CLI and the test-suite.
"""
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .models import Account, AttemptRecord, RollcallTask


def as_utc(value: Any) -> datetime:
    """Accepts datetime, date or ISO string; naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    elif isinstance(value, date) and not isinstance(value, datetime):
        # unquoted YAML dates load as date: midnight UTC
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AccountStore(ABC):
    @abstractmethod
    def list_auto_enabled(self) -> List[Account]:
        """Accounts flagged for automatic check-in, each with its newest cookie."""

    @abstractmethod
    def latest_cookie(self, account_id: str) -> Optional[str]:
        pass


class AbsenceStore(ABC):
    @abstractmethod
    def is_absent(self, account_id: str, at: datetime) -> bool:
        pass


class AuditStore(ABC):
    @abstractmethod
    def record_attempt(self, record: AttemptRecord):
        pass

    @abstractmethod
    def record_scan(self, raw: str, requester_id: Optional[str]) -> str:
        """Persist raw scan text; returns the scan id attempts refer to."""

    def scan_history(self, count: int = 10, user_id: Optional[str] = None, index: int = 0) -> List[Dict[str, Any]]:
        return []

    def attempt_history(self, count: int = 10, user_id: Optional[str] = None, index: int = 0) -> List[Dict[str, Any]]:
        return []


class RollcallFeed(ABC):
    @abstractmethod
    def list_active(self, cookie: str) -> List[RollcallTask]:
        pass


def page(rows: List[Dict[str, Any]], count: int, user_id: Optional[str], index: int,
         user_key: str) -> List[Dict[str, Any]]:
    """Newest-first page `index` of `count` rows, optionally for one user."""
    if user_id:
        rows = [r for r in rows if r.get(user_key) == user_id]
    rows = list(reversed(rows))
    start = max(index, 0) * count
    return rows[start:start + count]


# ─── In-memory implementations ───────────────────────────────────

class InMemoryAccountStore(AccountStore):
    def __init__(self, accounts: Optional[List[Account]] = None):
        self.accounts: Dict[str, Account] = {a.id: a for a in accounts or []}

    def add(self, account: Account):
        self.accounts[account.id] = account

    def list_auto_enabled(self) -> List[Account]:
        return [a for a in self.accounts.values() if a.is_auto]

    def latest_cookie(self, account_id: str) -> Optional[str]:
        account = self.accounts.get(account_id)
        return account.latest_cookie if account else None


@dataclass
class AbsenceWindow:
    account_id: str
    start: datetime
    end: datetime

    def covers(self, at: datetime) -> bool:
        return as_utc(self.start) <= as_utc(at) <= as_utc(self.end)


class InMemoryAbsenceStore(AbsenceStore):
    def __init__(self, windows: Optional[List[AbsenceWindow]] = None):
        self.windows = list(windows or [])

    def mark_absent(self, account_id: str, start: datetime, end: datetime):
        self.windows.append(AbsenceWindow(account_id, start, end))

    def is_absent(self, account_id: str, at: datetime) -> bool:
        return any(w.account_id == account_id and w.covers(at) for w in self.windows)


class InMemoryAuditStore(AuditStore):
    def __init__(self):
        self.lock = threading.Lock()
        self.attempts: List[AttemptRecord] = []
        self.scans: List[Dict[str, Any]] = []

    def record_attempt(self, record: AttemptRecord):
        with self.lock:
            self.attempts.append(record)

    def record_scan(self, raw: str, requester_id: Optional[str]) -> str:
        scan_id = str(uuid.uuid4())
        with self.lock:
            self.scans.append({
                "id": scan_id,
                "result": raw,
                "user_id": requester_id,
                "created_at": datetime.now(timezone.utc).isoformat(),
            })
        return scan_id

    def scan_history(self, count=10, user_id=None, index=0):
        with self.lock:
            rows = list(self.scans)
        return page(rows, count, user_id, index, "user_id")

    def attempt_history(self, count=10, user_id=None, index=0):
        with self.lock:
            rows = [r.to_dict() for r in self.attempts]
        return page(rows, count, user_id, index, "account_id")


class StaticRollcallFeed(RollcallFeed):
    """Feed that returns a fixed task list for any cookie."""

    def __init__(self, tasks: Optional[List[RollcallTask]] = None):
        self.tasks = list(tasks or [])
        self.cookies_seen: List[str] = []

    def list_active(self, cookie: str) -> List[RollcallTask]:
        self.cookies_seen.append(cookie)
        return list(self.tasks)


# ─── YAML roster ─────────────────────────────────────────────────

class YamlRoster(InMemoryAccountStore, InMemoryAbsenceStore):
    """
    Accounts and absence windows read from a YAML file:

        accounts:
          - {id: u1, name: Alice, auto: true, cookie: "session=..."}
        absences:
          - {account: u1, start: 2026-10-19T08:00:00, end: 2026-10-19T12:00:00}
    """

    def __init__(self, path: str):
        self.path = path
        accounts, windows = self._load(path)
        InMemoryAccountStore.__init__(self, accounts)
        InMemoryAbsenceStore.__init__(self, windows)

    @staticmethod
    def _load(path: str) -> Tuple[List[Account], List[AbsenceWindow]]:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        accounts = []
        for idx, item in enumerate(data.get("accounts") or []):
            accounts.append(Account(
                id=str(item.get("id", f"account_{idx}")),
                name=item.get("name", ""),
                is_auto=bool(item.get("auto", True)),
                latest_cookie=item.get("cookie") or None,
            ))

        windows = []
        for item in data.get("absences") or []:
            windows.append(AbsenceWindow(
                account_id=str(item["account"]),
                start=as_utc(item["start"]),
                end=as_utc(item["end"]),
            ))
        return accounts, windows
