import unittest
import sys
import os
import json
import tempfile

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tronsign.audit import JsonlAuditStore
from tronsign.models import AttemptRecord, Outcome


def record(account_id, outcome=Outcome.SUCCESS):
    return AttemptRecord(
        account_id=account_id,
        cookie_used="c",
        request_payload={"deviceId": "d", "numberCode": "0001"},
        response_status=200,
        response_body={"ok": True},
        outcome=outcome,
    )


class TestJsonlAuditStore(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "audit.jsonl")

    def tearDown(self):
        self.tmp.cleanup()

    def test_entries_are_chained(self):
        store = JsonlAuditStore(self.path)
        scan_id = store.record_scan("3~x", "u1")
        store.record_attempt(record("u1"))
        store.record_attempt(record("u2", Outcome.FAILURE))

        entries = store.entries()
        self.assertEqual([e["type"] for e in entries], ["SCAN", "ATTEMPT", "ATTEMPT"])
        self.assertEqual(entries[0]["data"]["id"], scan_id)
        self.assertEqual(entries[1]["prev_hash"], entries[0]["current_hash"])
        self.assertTrue(store.verify())

    def test_tamper_is_detected(self):
        store = JsonlAuditStore(self.path)
        store.record_attempt(record("u1"))
        store.record_attempt(record("u2"))

        with open(self.path, "r", encoding="utf-8") as f:
            lines = f.readlines()
        entry = json.loads(lines[0])
        entry["data"]["outcome"] = "failure"
        lines[0] = json.dumps(entry) + "\n"
        with open(self.path, "w", encoding="utf-8") as f:
            f.writelines(lines)

        self.assertFalse(store.verify())

    def test_reopen_continues_chain(self):
        JsonlAuditStore(self.path).record_attempt(record("u1"))
        reopened = JsonlAuditStore(self.path)
        reopened.record_attempt(record("u2"))
        self.assertTrue(reopened.verify())

    def test_reopen_after_truncated_tail(self):
        first = JsonlAuditStore(self.path)
        first.record_attempt(record("u1"))
        with open(self.path, "a", encoding="utf-8") as f:
            f.write('{"type": "ATTEMPT", "timest')

        with self.assertLogs("tronsign.audit", level="WARNING"):
            reopened = JsonlAuditStore(self.path)
        self.assertEqual(reopened.chain_hash, first.chain_hash)

        reopened.record_attempt(record("u2"))
        self.assertEqual([r["account_id"] for r in reopened.attempt_history()], ["u2", "u1"])
        self.assertTrue(reopened.verify())

    def test_unreadable_lines_are_skipped(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("not json\n[1, 2]\n")

        store = JsonlAuditStore(self.path)
        self.assertEqual(store.entries(), [])
        store.record_scan("3~x", "u1")
        self.assertEqual(len(store.scan_history()), 1)

    def test_history_is_newest_first_and_paged(self):
        store = JsonlAuditStore(self.path)
        for aid in ("u1", "u2", "u1"):
            store.record_attempt(record(aid))

        self.assertEqual([r["account_id"] for r in store.attempt_history(count=2)], ["u1", "u2"])
        self.assertEqual([r["account_id"] for r in store.attempt_history(count=2, index=1)], ["u1"])
        self.assertEqual(len(store.attempt_history(user_id="u1")), 2)
        self.assertEqual(store.scan_history(), [])


if __name__ == '__main__':
    unittest.main()
