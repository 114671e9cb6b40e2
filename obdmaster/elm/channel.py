"""
channel.py – текстовые команды адаптеру поверх Connection.
* одна команда = одна строка с ``\\r``
* один ответ = ровно одно чтение с таймаутом, без повторов
"""

from __future__ import annotations
import time

from ..errors import IoError, NoResponse
from ..logging_config import get_logger, log_command_summary
from .transport import Connection

_log = get_logger("elm.channel")

TERMINATOR         = "\r"
MAX_RESPONSE_BYTES = 255
PROBE_TIMEOUT      = 1.0
SETTLE_DELAY       = 0.1

# reset, echo off, headers on, linefeeds off, ISO 15765-4 CAN 11/500
HANDSHAKE = ("ATZ", "ATE0", "ATH1", "ATL0", "ATSP6")


class CommandChannel:
    def __init__(self, conn: Connection, settle_delay: float = SETTLE_DELAY):
        self._conn = conn
        self._settle_delay = settle_delay

    def send_command(self, text: str) -> None:
        """Write ``text`` as one ASCII line. Short or failed writes raise IoError."""
        if not text or not text.strip():
            raise ValueError("empty command")
        if not text.endswith(TERMINATOR):
            text += TERMINATOR

        data = text.encode("ascii")
        log_command_summary(_log, "TX", text)
        written = self._conn.write(data)
        if written < len(data):
            raise IoError(f"short write: {written} of {len(data)} bytes for {text.strip()!r}")

    def send_and_collect(self, text: str, timeout: float) -> bytes:
        """
        Послать команду и один раз прочитать ответ.
        Короткий ответ принимается как есть; ноль байт – NoResponse.
        """
        self._conn.flush_input()
        self.send_command(text)
        started = time.monotonic()
        reply = self._conn.read_with_timeout(MAX_RESPONSE_BYTES, timeout)
        elapsed = time.monotonic() - started

        if not reply:
            _log.warning("No response to %r within %.2fs", text.strip(), timeout)
            raise NoResponse(f"no response to {text.strip()!r} within {timeout:.2f}s")

        log_command_summary(_log, "RX", text, f"{len(reply)} bytes in {elapsed:.3f}s")
        return reply

    def probe_liveness(self, timeout: float = PROBE_TIMEOUT) -> bool:
        """``AT`` -> reply containing ``OK``. Silence or garbage means not alive."""
        try:
            reply = self.send_and_collect("AT", timeout)
        except NoResponse:
            _log.info("Connection test failed: adapter silent")
            return False
        except IoError as e:
            _log.warning("Connection test failed: %s", e)
            return False

        alive = b"OK" in reply
        if alive:
            _log.info("Connection test successful: %r", reply.decode("ascii", errors="replace").strip())
        else:
            _log.info("Connection test failed: %r", reply)
        return alive

    def run_handshake(self) -> None:
        """
        ATZ, ATE0, ATH1, ATL0, ATSP6 с паузой после каждой.
        Адаптер может не отвечать эхом, поэтому ошибки отдельных команд
        только логируются.
        """
        _log.info("=== HANDSHAKE START: %s ===", self._conn.port)
        for command in HANDSHAKE:
            try:
                self.send_command(command)
            except IoError as e:
                _log.warning("Setup command %s failed: %s", command, e)
            time.sleep(self._settle_delay)
        _log.info("=== HANDSHAKE END: %s ===", self._conn.port)
