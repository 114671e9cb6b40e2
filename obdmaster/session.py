import logging
import time

from .config import Settings, get_settings
from .enums import ObdPid, SessionState
from .errors import InvalidResponse, NotConnected, ParseError
from .elm.channel import MAX_RESPONSE_BYTES, CommandChannel
from .elm.codec import decode_response, encode_request, narrow
from .elm.transport import Connection, open_connection
from .models import PidResponse

log = logging.getLogger("ObdSession")


class ObdSession:
    """
    • Открытие порта + AT-инициализация адаптера
    • Проверка связи (``AT`` -> ``OK``)
    • Запросы Mode 01 PID и типизированные геттеры

    CLOSED -> OPENING -> HANDSHAKE -> READY -> CLOSED. One connection per
    session; several adapters need several sessions. Not thread-safe.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._conn: Connection | None = None
        self._channel: CommandChannel | None = None
        self._state = SessionState.CLOSED

    # ───── состояние ───────────────────────────────────────────
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def port(self) -> str | None:
        return self._conn.port if self._conn else None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # ───── жизненный цикл ──────────────────────────────────────
    def open(self, port: str | None = None, baud_rate: int | None = None) -> None:
        """
        Open the adapter and run the AT setup sequence.
        An already open connection is closed first.

        Raises:
            DeviceOpenError, ConfigurationError: from the transport; the
                session stays CLOSED.
        """
        if self._conn is not None:
            log.info("Closing %s before reopening", self._conn.port)
            self.close()

        port = port or self.settings.serial_port
        baud_rate = baud_rate or self.settings.baud_rate

        self._state = SessionState.OPENING
        try:
            conn = open_connection(port, baud_rate)
        except BaseException:
            self._state = SessionState.CLOSED
            raise

        self._conn = conn
        self._channel = CommandChannel(conn, settle_delay=self.settings.command_settle_delay)
        log.info("Connected to %s at %d baud", port, conn.config.baud_rate)
        try:
            time.sleep(self.settings.open_settle_delay)  # адаптер стабилизируется

            self._state = SessionState.HANDSHAKE
            self._channel.run_handshake()
        except BaseException:
            self.close()
            raise
        self._state = SessionState.READY

    def close(self) -> None:
        """Release the connection. Safe to call in any state, any number of times."""
        conn, self._conn, self._channel = self._conn, None, None
        self._state = SessionState.CLOSED
        if conn is not None:
            conn.close()
            log.info("Connection closed")

    # ───── запросы ─────────────────────────────────────────────
    def test_connection(self) -> bool:
        return self._ready_channel().probe_liveness(self.settings.probe_timeout)

    def request_pid(self, pid: int) -> PidResponse:
        """
        One round trip for a Mode 01 PID.

        Raises:
            NotConnected: session is not READY.
            NoResponse: adapter silent for ``request_timeout``.
            ParseError: reply malformed.
        """
        command = encode_request(pid)
        channel = self._ready_channel()
        reply = channel.send_and_collect(command, self.settings.request_timeout)
        text = reply.decode("ascii", errors="replace")
        log.debug("Response for PID 0x%02X: %r", pid, text)
        return decode_response(text, pid)

    def get_rpm(self) -> int:
        return self._typed(ObdPid.ENGINE_RPM, 16, signed=False)

    def get_speed(self) -> int:
        return self._typed(ObdPid.VEHICLE_SPEED, 8, signed=False)

    def get_coolant_temp(self) -> int:
        return self._typed(ObdPid.COOLANT_TEMP, 8, signed=True)

    def get_fuel_level(self) -> int:
        return self._typed(ObdPid.FUEL_LEVEL, 8, signed=False)

    def get_engine_load(self) -> int:
        return self._typed(ObdPid.ENGINE_LOAD, 8, signed=False)

    # ───── сырой обмен ─────────────────────────────────────────
    def write(self, data: bytes) -> int:
        self._ready_channel()
        return self._conn.write(data)

    def read(self, max_len: int = MAX_RESPONSE_BYTES, timeout: float | None = None) -> bytes:
        """Raw read; empty bytes on timeout."""
        self._ready_channel()
        if timeout is None:
            timeout = self.settings.raw_read_timeout
        return self._conn.read_with_timeout(max_len, timeout)

    # ───── внутреннее ──────────────────────────────────────────
    def _ready_channel(self) -> CommandChannel:
        if self._state is not SessionState.READY or self._channel is None:
            raise NotConnected(f"session is {self._state.value}, not ready")
        return self._channel

    def _typed(self, pid: ObdPid, bits: int, signed: bool) -> int:
        try:
            response = self.request_pid(pid)
        except ParseError as e:
            # e.response несёт valid=False
            raise InvalidResponse(f"{pid.name}: invalid response: {e}") from e
        if not response.valid:
            raise InvalidResponse(f"{pid.name}: invalid response")
        return narrow(response.scaled_value, bits, signed)
