import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

from .executor import AttemptExecutor
from .models import Account, AttemptRecord, CheckinPayload
from .stores import AuditStore

logger = logging.getLogger("tronsign.dispatcher")


class FanOutDispatcher:
    """
    Runs one check-in per account concurrently and gathers every outcome.
    Never fails as a whole: an account that errors only loses its own record.
    """

    def __init__(self, executor: AttemptExecutor, audit: AuditStore, max_workers: int = 32):
        self.executor = executor
        self.audit = audit
        self.max_workers = max_workers

    def _persist(self, record: AttemptRecord):
        try:
            self.audit.record_attempt(record)
        except Exception as e:
            logger.error("Audit write failed for %s: %s", record.account_id, e)

    def dispatch(self, accounts: List[Account], payload: CheckinPayload,
                 scan_id: Optional[str] = None) -> List[AttemptRecord]:
        if not accounts:
            return []

        records: List[AttemptRecord] = []
        workers = max(1, min(self.max_workers, len(accounts)))
        logger.info("Dispatching %s check-in for %d account(s), rollcall=%s",
                    payload.mode.value, len(accounts), payload.rollcall_id)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            future_to_account = {
                pool.submit(self.executor.attempt, account, payload, scan_id): account
                for account in accounts
            }
            for future in as_completed(future_to_account):
                account = future_to_account[future]
                try:
                    record = future.result()
                except Exception as exc:
                    logger.error("Attempt for %s raised unexpectedly: %s", account.id, exc)
                    continue
                if record is None:
                    continue
                self._persist(record)
                records.append(record)

        ok = sum(1 for r in records if r.succeeded)
        logger.info("Fan-out done: %d/%d succeeded", ok, len(records))
        return records
