import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tronsign.codec import decode, decode_value, to_base36, parse_base36, KEY_TABLE, ENUM_TABLE
from tronsign.models import ScanPayload

SUB = chr(26)
DLE = chr(16)
RS = chr(30)
US = chr(31)


class TestDecode(unittest.TestCase):
    def test_flag_true_and_false(self):
        self.assertIs(decode("7~" + SUB + "1")["action"], True)
        self.assertIs(decode("7~" + SUB + "0")["action"], False)

    def test_enum_values(self):
        self.assertEqual(decode("2~" + SUB + "2")["activityType"], "classroom-exam")
        self.assertEqual(decode("2~" + SUB + "3")["activityType"], "feedback")
        self.assertEqual(decode("2~" + SUB + "4")["activityType"], "vote")

    def test_unknown_flag_passes_through(self):
        self.assertEqual(decode("2~" + SUB + "z")["activityType"], SUB + "z")

    def test_base36_integer(self):
        value = decode("2~" + DLE + "h")["activityType"]
        self.assertEqual(value, 17)
        self.assertIsInstance(value, int)

    def test_two_pieces_concatenate_digits(self):
        # "1" and "2" become 1.2, not 1/2
        self.assertEqual(decode("2~" + DLE + "1.2")["activityType"], 1.2)
        # "a" (10) and "1" (1) become 10.1
        self.assertEqual(decode("2~" + DLE + "a.1")["activityType"], 10.1)

    def test_bad_number_falls_back_to_token(self):
        self.assertEqual(decode("2~" + DLE + "??")["activityType"], DLE + "??")
        self.assertEqual(decode("2~" + DLE)["activityType"], DLE)

    def test_escaped_separators(self):
        self.assertEqual(decode("3~a" + US + "b" + RS + "c")["data"], "a~b!c")

    def test_unknown_key_is_kept(self):
        payload = decode("zz~hello!4~" + DLE + "cpu7")
        self.assertEqual(payload["zz"], "hello")
        self.assertEqual(payload.rollcall_id, int("cpu7", 36))
        self.assertEqual(payload.to_dict()["zz"], "hello")

    def test_value_splits_on_first_tilde_only(self):
        self.assertEqual(decode("3~a~b")["data"], "a~b")

    def test_terms_without_tilde_are_skipped(self):
        self.assertEqual(decode("garbage!!3~x").to_dict(), {"data": "x"})

    def test_later_terms_overwrite(self):
        self.assertEqual(decode("3~first!3~second")["data"], "second")

    def test_full_scan_string(self):
        raw = "/j?p=0~" + DLE + "1zxy!3~1762926889fcb9acd6a8f3645f4743f5f7094c238a!4~" + DLE + "cpu7"
        payload = decode(raw)
        self.assertEqual(payload.data, "1762926889fcb9acd6a8f3645f4743f5f7094c238a")
        self.assertEqual(payload.rollcall_id, int("cpu7", 36))
        self.assertEqual(payload["/j?p=0"], int("1zxy", 36))

    def test_never_raises(self):
        for raw in [None, "", 42, b"3~x", "!", "~", "!!~!!", SUB * 5, DLE + "." + DLE]:
            result = decode(raw)
            self.assertIsInstance(result, ScanPayload)
        self.assertEqual(len(decode(None)), 0)
        self.assertEqual(len(decode("")), 0)

    def test_deterministic(self):
        raw = "0~" + DLE + "k!1~abc!8~" + SUB + "1"
        self.assertEqual(decode(raw).to_dict(), decode(raw).to_dict())


class TestTables(unittest.TestCase):
    def test_key_table_order(self):
        self.assertEqual(KEY_TABLE["0"], "courseId")
        self.assertEqual(KEY_TABLE["4"], "rollcallId")
        self.assertEqual(KEY_TABLE["a"], "joinCourse")
        self.assertEqual(len(KEY_TABLE), 11)

    def test_enum_table(self):
        self.assertEqual(ENUM_TABLE, {SUB + "2": "classroom-exam", SUB + "3": "feedback", SUB + "4": "vote"})

    def test_base36_helpers(self):
        self.assertEqual(to_base36(35), "z")
        self.assertEqual(to_base36(36), "10")
        self.assertEqual(to_base36(-17), "-h")
        self.assertEqual(parse_base36("H"), 17)
        with self.assertRaises(ValueError):
            parse_base36("1_0")

    def test_decode_value_plain_string(self):
        self.assertEqual(decode_value("plain"), "plain")


if __name__ == '__main__':
    unittest.main()
