"""
Mode 01 PID requests and replies.

Request::

    01 <PID>  \\r          e.g. "010C\\r"

Reply (positive response to mode 01)::

    41 <PID> <A> <B>       e.g. "41 0C 1A F8" or "410C1AF8"

Only the two data bytes are consumed: ``raw = (A << 8) | B``, then the
per-PID rule below. All arithmetic is integer with truncating division.
"""

from __future__ import annotations

import string
from typing import Callable, Dict, Tuple

from ..enums import ObdPid
from ..errors import ParseError
from ..models import PidRequest, PidResponse

MODE_CURRENT_DATA = "01"
PREFIX_LEN = 3          # "41 "
MIN_REPLY_LEN = 5

_HEX = frozenset(string.hexdigits)

# pid -> (scale, unit)
SCALING: Dict[int, Tuple[Callable[[int], int], str]] = {
    ObdPid.ENGINE_RPM:    (lambda raw: raw // 4,         "RPM"),
    ObdPid.VEHICLE_SPEED: (lambda raw: raw,              "km/h"),
    ObdPid.COOLANT_TEMP:  (lambda raw: raw - 40,         "°C"),
    ObdPid.ENGINE_LOAD:   (lambda raw: raw * 100 // 255, "%"),
    ObdPid.FUEL_LEVEL:    (lambda raw: raw * 100 // 255, "%"),
}
_PASSTHROUGH = (lambda raw: raw, "raw")


def encode_request(pid: int) -> str:
    """``"01" + two upper-case hex digits + "\\r"``."""
    return PidRequest(pid=_check_pid(pid)).command


def scale(pid: int, raw_value: int) -> Tuple[int, str]:
    rule, unit = SCALING.get(pid, _PASSTHROUGH)
    return rule(raw_value), unit


def decode_response(response_text: str | bytes, pid: int) -> PidResponse:
    """
    Parse an adapter reply for ``pid``.

    Raises:
        ParseError: reply shorter than 5 characters, fewer than two data
            bytes after the prefix, or non-hex data.
    """
    pid = _check_pid(pid)
    if isinstance(response_text, (bytes, bytearray)):
        response_text = bytes(response_text).decode("ascii", errors="replace")

    text = response_text.strip().strip(">").strip()
    if len(text) < MIN_REPLY_LEN:
        raise _fail(pid, response_text, f"reply too short ({len(text)} chars)")

    payload = _payload_digits(text, pid)
    if len(payload) < 4:
        raise _fail(pid, response_text, "expected two data bytes")

    a, b = payload[0:2], payload[2:4]
    if not (set(a) <= _HEX and set(b) <= _HEX):
        raise _fail(pid, response_text, f"not hexadecimal: {a!r} {b!r}")

    raw_value = (int(a, 16) << 8) | int(b, 16)
    scaled, unit = scale(pid, raw_value)
    return PidResponse(pid=pid, raw_value=raw_value, valid=True, unit=unit, scaled_value=scaled)


def _payload_digits(text: str, pid: int) -> str:
    """
    Digits after the positive-response prefix, whitespace removed.

    Spaced replies ("41 0C 1A F8") drop the fixed 3-char "41 " prefix and,
    when more than two bytes follow, the PID echo. Unspaced replies
    ("410C1AF8") carry mode and PID echo in the first four characters.
    """
    if text[2].isspace():
        digits = "".join(text[PREFIX_LEN:].split())
        if len(digits) > 4 and digits[:2].upper() == f"{pid:02X}":
            digits = digits[2:]
        return digits
    return "".join(text[4:].split())


def _fail(pid: int, raw: str, reason: str) -> ParseError:
    return ParseError(
        f"PID 0x{pid:02X}: {reason}: {raw!r}",
        raw=raw,
        response=PidResponse(pid=pid, valid=False),
    )


def _check_pid(pid: int) -> int:
    if isinstance(pid, bool) or not isinstance(pid, int):
        raise TypeError(f"pid must be int, got {type(pid).__name__}")
    if not 0 <= pid <= 0xFF:
        raise ValueError(f"pid out of range 0x00..0xFF: {pid}")
    return int(pid)


def narrow(value: int, bits: int, signed: bool = False) -> int:
    """Truncate ``value`` to a fixed-width integer the way a C cast would."""
    mask = (1 << bits) - 1
    value &= mask
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value
