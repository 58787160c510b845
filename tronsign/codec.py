"""
Decoder for the check-in scan text carried by classroom QR codes.

Format: terms separated by "!", each term "<key>~<value>". Keys are base-36
indices into a fixed field table. Values are tagged by their first byte:

    0x1A  boolean / enum      ("\\x1a1" true, "\\x1a0" false, "\\x1a2".. enum names)
    0x10  base-36 number      ("\\x10h" -> 17, "\\x101.2" -> 1.2)
    other literal string      (0x1F stands for "~", 0x1E stands for "!")
"""
import logging
import re
from typing import Any, Dict

from .models import WIRE_FIELDS, FieldValue, ScanPayload

logger = logging.getLogger("tronsign.codec")

TERM_SEP = "!"
PAIR_SEP = "~"
NUMBER_SEP = "."

ESC_TERM = chr(30)   # stands for "!" inside a string value
ESC_PAIR = chr(31)   # stands for "~" inside a string value
TAG_FLAG = chr(26)
TAG_NUMBER = chr(16)

FLAG_TRUE = TAG_FLAG + "1"
FLAG_FALSE = TAG_FLAG + "0"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_BASE36_RE = re.compile(r"^-?[0-9a-z]+$", re.IGNORECASE)

ENUM_VALUES = ("classroom-exam", "feedback", "vote")


def to_base36(num: int) -> str:
    if num < 0:
        return "-" + to_base36(-num)
    if num < 36:
        return _BASE36_DIGITS[num]
    out = ""
    while num > 0:
        num, rem = divmod(num, 36)
        out = _BASE36_DIGITS[rem] + out
    return out


def parse_base36(token: str) -> int:
    """Strict base-36 parse; raises ValueError on anything but [-]digits."""
    if not _BASE36_RE.match(token):
        raise ValueError(f"not a base-36 integer: {token!r}")
    return int(token, 36)


# key token -> field name ("0" -> courseId ... "a" -> joinCourse)
KEY_TABLE: Dict[str, str] = {to_base36(i): name for i, name in enumerate(WIRE_FIELDS)}

# flag token -> enum name ("\x1a2" -> classroom-exam ...)
ENUM_TABLE: Dict[str, str] = {TAG_FLAG + to_base36(i + 2): name for i, name in enumerate(ENUM_VALUES)}


def _decode_flag(token: str) -> FieldValue:
    if token == FLAG_TRUE:
        return True
    if token == FLAG_FALSE:
        return False
    return ENUM_TABLE.get(token, token)


def _decode_number(token: str) -> FieldValue:
    pieces = token[1:].split(NUMBER_SEP)
    try:
        nums = [parse_base36(p) for p in pieces]
    except ValueError:
        return token
    if len(nums) > 1:
        # Digit concatenation, not division: pieces 1 and 2 give 1.2
        try:
            return float(f"{nums[0]}.{nums[1]}")
        except ValueError:
            return token
    if len(nums) == 1:
        return nums[0]
    return token


def _decode_string(token: str) -> str:
    return token.replace(ESC_PAIR, PAIR_SEP).replace(ESC_TERM, TERM_SEP)


def decode_value(token: str) -> FieldValue:
    if token.startswith(TAG_FLAG):
        return _decode_flag(token)
    if token.startswith(TAG_NUMBER):
        return _decode_number(token)
    return _decode_string(token)


def decode(raw: Any) -> ScanPayload:
    """
    Decode scan text into a ScanPayload. Never raises: non-string or empty
    input yields an empty payload, unknown keys are kept verbatim and later
    terms overwrite earlier ones.
    """
    payload = ScanPayload()
    if not isinstance(raw, str) or not raw:
        return payload

    decoded = 0
    for term in raw.split(TERM_SEP):
        if not term:
            continue
        key_token, sep, value_token = term.partition(PAIR_SEP)
        if not sep:
            continue
        key = KEY_TABLE.get(key_token, key_token)
        payload.set(key, decode_value(value_token))
        decoded += 1

    logger.debug("Decoded %d term(s) from scan text (%d chars)", decoded, len(raw))
    return payload
