"""
Use cases the routing layer calls into: QR scan check-in and numeric
check-in (with code recovery when no code is supplied).
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .audit import JsonlAuditStore
from .bruteforce import BruteForceSearch
from .codec import decode
from .config import Settings
from .dispatcher import FanOutDispatcher
from .eligibility import EligibilityFilter
from .errors import NoActiveTaskError, NoCookieError, NoEligibleAccountsError, SearchInProgressError
from .executor import AttemptExecutor
from .feed import HttpRollcallFeed, numeric_tasks
from .http_client import HttpClient
from .models import Account, CheckinPayload, DigitalReport, ScanReport
from .session_lock import SESSION_LOCK, SessionLock
from .stores import AbsenceStore, AccountStore, AuditStore, RollcallFeed, YamlRoster

logger = logging.getLogger("tronsign.service")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SigninService:
    def __init__(self, accounts: AccountStore, absences: AbsenceStore, audit: AuditStore,
                 feed: RollcallFeed, executor: AttemptExecutor,
                 dispatcher: Optional[FanOutDispatcher] = None,
                 searcher: Optional[BruteForceSearch] = None,
                 lock: SessionLock = SESSION_LOCK,
                 clock: Callable[[], datetime] = utcnow):
        self.accounts = accounts
        self.audit = audit
        self.feed = feed
        self.executor = executor
        self.dispatcher = dispatcher or FanOutDispatcher(executor, audit)
        self.searcher = searcher or BruteForceSearch(executor)
        self.lock = lock
        self.clock = clock
        self.eligibility = EligibilityFilter(absences)

    def _eligible(self) -> List[Account]:
        return self.eligibility.filter(self.accounts.list_auto_enabled(), self.clock())

    def dispatch_scan(self, raw: str, requester_id: Optional[str] = None) -> ScanReport:
        scan_id = self.audit.record_scan(raw, requester_id)
        payload = decode(raw)
        eligible = self._eligible()

        logger.info("Scan %s decoded (%d field(s)); %d eligible account(s)", scan_id, len(payload), len(eligible))
        records = self.dispatcher.dispatch(eligible, CheckinPayload.from_scan(payload), scan_id)
        return ScanReport(
            scan_id=scan_id,
            raw=raw,
            payload=payload,
            accounts=[a.id for a in eligible],
            records=records,
        )

    def _recover_code(self, rollcall_id: str, eligible: List[Account], requester_id: str) -> str:
        with self.lock.hold():
            probe = next((a for a in eligible if a.id == requester_id and a.has_cookie), None)
            if probe is None:
                raise NoCookieError("Requesting account is not eligible or has no cookie to probe with")
            return self.searcher.search(rollcall_id, probe)

    def dispatch_digital(self, code: Optional[str], requester_id: str) -> DigitalReport:
        # Fast path; hold() below is the authoritative test-and-set
        if not code and self.lock.held:
            raise SearchInProgressError(
                "A numeric code search is already running. Retry later or supply the code explicitly."
            )

        auto = self.accounts.list_auto_enabled()
        if not auto:
            raise NoEligibleAccountsError("No accounts have automatic check-in enabled")
        eligible = self.eligibility.filter(auto, self.clock())
        if not eligible:
            raise NoEligibleAccountsError("Every auto-enabled account is marked absent")

        cookie = self.accounts.latest_cookie(requester_id)
        if not cookie:
            raise NoCookieError(f"Account {requester_id} has no usable cookie")

        tasks = numeric_tasks(self.feed.list_active(cookie))
        if not tasks:
            raise NoActiveTaskError("No numeric rollcall is currently open")

        report = DigitalReport(tasks=tasks)
        for task in tasks:
            task_code = code or self._recover_code(task.rollcall_id, eligible, requester_id)
            report.codes[task.rollcall_id] = task_code
            logger.info("Checking in %d account(s) to rollcall %s with code %s",
                        len(eligible), task.rollcall_id, task_code)
            report.records.extend(
                self.dispatcher.dispatch(eligible, CheckinPayload.numeric(task.rollcall_id, task_code))
            )
        return report

    def scan_history(self, count: int = 10, user_id: Optional[str] = None, index: int = 0):
        return self.audit.scan_history(count, user_id, index)

    def attempt_history(self, count: int = 10, user_id: Optional[str] = None, index: int = 0):
        return self.audit.attempt_history(count, user_id, index)


def build_service(settings: Settings) -> SigninService:
    """Wire the concrete HTTP, YAML roster and JSONL audit collaborators."""
    client = HttpClient(
        settings.base_url,
        timeout=settings.timeout_sec,
        verbose=settings.verbose,
        user_agent=settings.user_agent,
        pool_size=max(settings.max_workers, settings.probe_workers),
    )
    roster = YamlRoster(settings.roster)
    audit = JsonlAuditStore(settings.audit_log)
    executor = AttemptExecutor(client)
    return SigninService(
        accounts=roster,
        absences=roster,
        audit=audit,
        feed=HttpRollcallFeed(client),
        executor=executor,
        dispatcher=FanOutDispatcher(executor, audit, max_workers=settings.max_workers),
        searcher=BruteForceSearch(executor, batch_size=settings.batch_size, max_workers=settings.probe_workers),
    )
