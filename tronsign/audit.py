import hashlib
import json
import logging
import os
import threading
import time
import uuid
from typing import Any, Dict, List, Optional

from .models import AttemptRecord
from .stores import AuditStore, page

logger = logging.getLogger("tronsign.audit")


def _parse_line(line: str, lineno: int) -> Optional[Dict[str, Any]]:
    try:
        entry = json.loads(line)
    except ValueError as e:
        # a crash mid-append leaves a partial last line
        logger.warning("Skipping unreadable audit line %d: %s", lineno, e)
        return None
    if not isinstance(entry, dict):
        logger.warning("Skipping non-object audit line %d", lineno)
        return None
    return entry


class JsonlAuditStore(AuditStore):
    """
    Append-only audit trail: one JSON object per line, each entry chained to the
    previous one by SHA-256 so edits to earlier lines are detectable.
    Writes are independent single-line appends; no grouping across a fan-out.
    """

    def __init__(self, path: str, run_id: Optional[str] = None):
        self.path = path
        self.run_id = run_id or str(uuid.uuid4())
        self.lock = threading.Lock()
        self._terminate_partial_line()
        self.chain_hash = self._tail_hash() or hashlib.sha256(self.run_id.encode()).hexdigest()

    def _terminate_partial_line(self):
        if not os.path.exists(self.path) or os.path.getsize(self.path) == 0:
            return
        with open(self.path, "rb+") as f:
            f.seek(-1, os.SEEK_END)
            if f.read(1) != b"\n":
                f.write(b"\n")

    def _tail_hash(self) -> Optional[str]:
        entries = self.entries()
        if not entries:
            return None
        return entries[-1].get("current_hash")

    def _append(self, event_type: str, data: Dict[str, Any]) -> str:
        with self.lock:
            entry = {
                "type": event_type,
                "timestamp": time.time(),
                "data": data,
                "prev_hash": self.chain_hash,
            }
            entry_str = json.dumps(entry, sort_keys=True, default=str)
            self.chain_hash = hashlib.sha256((self.chain_hash + entry_str).encode()).hexdigest()
            entry["current_hash"] = self.chain_hash

            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
            return self.chain_hash

    def record_attempt(self, record: AttemptRecord):
        self._append("ATTEMPT", record.to_dict())

    def record_scan(self, raw: str, requester_id: Optional[str]) -> str:
        scan_id = str(uuid.uuid4())
        self._append("SCAN", {"id": scan_id, "result": raw, "user_id": requester_id})
        return scan_id

    def entries(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        out = []
        with open(self.path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                if not line.strip():
                    continue
                entry = _parse_line(line, lineno)
                if entry is None:
                    continue
                if event_type is None or entry.get("type") == event_type:
                    out.append(entry)
        return out

    def verify(self) -> bool:
        """Recompute the hash chain over the whole file."""
        entries = self.entries()
        for prev, entry in zip(entries, entries[1:]):
            if entry.get("prev_hash") != prev.get("current_hash"):
                logger.warning("Audit chain broken before entry at %s", entry.get("timestamp"))
                return False
        for entry in entries:
            body = {k: entry[k] for k in ("type", "timestamp", "data", "prev_hash")}
            expected = hashlib.sha256((entry["prev_hash"] + json.dumps(body, sort_keys=True, default=str)).encode()).hexdigest()
            if expected != entry.get("current_hash"):
                logger.warning("Audit entry hash mismatch at %s", entry.get("timestamp"))
                return False
        return True

    def scan_history(self, count=10, user_id=None, index=0):
        rows = [e["data"] for e in self.entries("SCAN")]
        return page(rows, count, user_id, index, "user_id")

    def attempt_history(self, count=10, user_id=None, index=0):
        rows = [e["data"] for e in self.entries("ATTEMPT")]
        return page(rows, count, user_id, index, "account_id")
