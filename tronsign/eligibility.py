import logging
from datetime import datetime
from typing import List

from .models import Account
from .stores import AbsenceStore

logger = logging.getLogger("tronsign.eligibility")


class EligibilityFilter:
    """Keeps auto-enabled accounts that are not on leave at a given moment."""

    def __init__(self, absences: AbsenceStore):
        self.absences = absences

    def filter(self, accounts: List[Account], at: datetime) -> List[Account]:
        eligible = []
        for account in accounts:
            if not account.is_auto:
                continue
            if self.absences.is_absent(account.id, at):
                logger.info("Skipping %s (%s): marked absent", account.name or account.id, account.id)
                continue
            eligible.append(account)
        return eligible
