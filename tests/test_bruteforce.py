import unittest
from unittest.mock import MagicMock
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fakes import FakeBackend
from tronsign.bruteforce import BruteForceSearch
from tronsign.errors import ExhaustedError, NoCookieError
from tronsign.executor import AttemptExecutor
from tronsign.models import Account, BruteForceSession


class TestBruteForceSearch(unittest.TestCase):
    def setUp(self):
        self.account = Account(id="u1", name="Prober", latest_cookie="cookie-u1")

    def _search(self, backend, batch_size):
        client = MagicMock()
        client.send.side_effect = backend.send
        return BruteForceSearch(AttemptExecutor(client), batch_size=batch_size, max_workers=16)

    def test_stops_within_first_batch(self):
        backend = FakeBackend(valid_code="0007")
        searcher = self._search(backend, batch_size=10)

        self.assertEqual(searcher.search("99", self.account), "0007")
        probed = backend.probed_codes
        self.assertLessEqual(len(probed), 10)
        self.assertTrue(all(code <= "0009" for code in probed))
        self.assertEqual(searcher.last_session.discovered_code, "0007")
        self.assertEqual(searcher.last_session.batches_run, 1)

    def test_later_batches_not_started(self):
        backend = FakeBackend(valid_code="1234")
        searcher = self._search(backend, batch_size=500)

        self.assertEqual(searcher.search("99", self.account), "1234")
        probed = backend.probed_codes
        self.assertEqual(len(probed), 1500)
        self.assertEqual(max(probed), "1499")
        self.assertEqual(searcher.last_session.batches_run, 3)

    def test_probes_target_the_rollcall(self):
        backend = FakeBackend(valid_code="0000")
        self._search(backend, batch_size=5).search("abc", self.account)
        self.assertTrue(all(c["target"] == "/api/rollcall/abc/answer_number_rollcall" for c in backend.calls))

    def test_exhausted(self):
        backend = FakeBackend(valid_code=None)
        searcher = self._search(backend, batch_size=1000)

        with self.assertRaises(ExhaustedError) as ctx:
            searcher.search("99", self.account)
        self.assertEqual(ctx.exception.probes_sent, 10000)
        self.assertEqual(len(set(backend.probed_codes)), 10000)

    def test_probe_account_without_cookie(self):
        backend = FakeBackend(valid_code="0001")
        with self.assertRaises(NoCookieError):
            self._search(backend, batch_size=10).search("99", Account(id="u2"))
        self.assertEqual(backend.calls, [])

    def test_invalid_batch_size(self):
        with self.assertRaises(ValueError):
            BruteForceSearch(MagicMock(), batch_size=0)


class TestSearchSpace(unittest.TestCase):
    def test_batches_cover_space_in_order(self):
        session = BruteForceSession(rollcall_id="1", probe_account_id="u1", batch_size=3000)
        batches = list(session.batches())
        self.assertEqual([len(b) for b in batches], [3000, 3000, 3000, 1000])
        self.assertEqual(batches[0][0], "0000")
        self.assertEqual(batches[-1][-1], "9999")
        flat = [c for b in batches for c in b]
        self.assertEqual(flat, list(session.search_space()))


if __name__ == '__main__':
    unittest.main()
