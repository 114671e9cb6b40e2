"""
transport.py – последовательная линия к адаптеру ELM327.
* открывает порт, применяет 8N1 без управления потоком
* запоминает прежние настройки линии и возвращает их при закрытии
* чтение с таймаутом: ждём первый байт, забираем то, что уже в буфере
"""

from __future__ import annotations
import logging
import os

import serial

from ..errors import ConfigurationError, DeviceOpenError, IoError
from ..logging_config import get_logger, log_hex_data
from .config_ext import SerialConfig

_log = get_logger("elm.transport")


class Connection:
    """
    One open serial handle plus the line settings it had before we
    reconfigured it. Owned by exactly one session.
    """

    def __init__(self, ser: serial.Serial, config: SerialConfig, previous_settings: dict,
                 saved_termios: list | None = None):
        self._ser = ser
        self._config = config
        self._previous = previous_settings      # pyserial get_settings()
        self._saved_termios = saved_termios     # tcgetattr до открытия, только POSIX

    @property
    def port(self) -> str:
        return self._config.port

    @property
    def config(self) -> SerialConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        return self._ser is not None and self._ser.is_open

    def write(self, data: bytes) -> int:
        """Raw write. Returns the number of bytes the driver accepted."""
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(f"data must be bytes, got {type(data).__name__}")
        if not self.is_open:
            raise IoError(f"write on closed port {self.port}")

        log_hex_data(_log, logging.DEBUG, f"TX {self.port}", bytes(data))
        try:
            written = self._ser.write(data)
            self._ser.flush()
        except (serial.SerialException, OSError) as e:
            raise IoError(f"write to {self.port} failed: {e}") from e
        return len(data) if written is None else written

    def read_with_timeout(self, max_len: int, timeout: float) -> bytes:
        """
        Ждём не дольше ``timeout`` секунд первого байта, затем дочитываем
        только то, что уже лежит в буфере (максимум ``max_len``).
        Пустой результат – таймаут, не ошибка.
        """
        if max_len < 1:
            raise ValueError(f"max_len must be >= 1, got {max_len}")
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        if not self.is_open:
            raise IoError(f"read on closed port {self.port}")

        ser = self._ser
        line_timeout = ser.timeout
        try:
            if line_timeout != timeout:
                ser.timeout = timeout
            buf = ser.read(1)
            if buf and max_len > 1:
                waiting = ser.in_waiting
                if waiting:
                    buf += ser.read(min(waiting, max_len - 1))
        except (serial.SerialException, OSError) as e:
            raise IoError(f"read from {self.port} failed: {e}") from e
        finally:
            # вернуть таймаут линии (VTIME)
            if ser.is_open and ser.timeout != line_timeout:
                try:
                    ser.timeout = line_timeout
                except (serial.SerialException, ValueError, OSError) as e:
                    _log.warning("Could not restore read timeout on %s: %s", self.port, e)

        if buf:
            log_hex_data(_log, logging.DEBUG, f"RX {self.port}", buf)
        else:
            _log.debug("RX %s: nothing within %.3fs", self.port, timeout)
        return bytes(buf)

    def flush_input(self) -> None:
        """Drop unread adapter output (echoes, prompts from earlier commands)."""
        if not self.is_open:
            raise IoError(f"flush on closed port {self.port}")
        try:
            self._ser.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            raise IoError(f"flush of {self.port} failed: {e}") from e

    def close(self) -> None:
        """Restore the previous line settings and release the port. Idempotent."""
        if self._ser is None:
            return

        ser, self._ser = self._ser, None
        if ser.is_open:
            if self._saved_termios is not None:
                _restore_termios(ser, self._saved_termios, self.port)
            elif self._previous:
                try:
                    ser.apply_settings(self._previous)
                except (serial.SerialException, ValueError, OSError) as e:
                    _log.warning("Could not restore line settings on %s: %s", self.port, e)
        try:
            ser.close()
        except (serial.SerialException, OSError) as e:
            _log.warning("Error closing %s: %s", self.port, e)
        finally:
            _log.info("Serial closed %s", self.port)


def open_connection(port: str, baud_rate: int) -> Connection:
    """
    Open ``port`` and configure it for the adapter.

    Raises:
        DeviceOpenError: the device path cannot be opened.
        ConfigurationError: the line settings cannot be applied.
    """
    if not port or not isinstance(port, str):
        raise ValueError(f"port must be a non-empty path, got {port!r}")

    config = SerialConfig(port=port, baud_rate=baud_rate)
    if config.baud_rate != baud_rate:
        _log.warning("Unsupported baud rate %r, using %d", baud_rate, config.baud_rate)

    saved_termios = _capture_termios(port)
    try:
        ser = serial.Serial(port=port, timeout=config.read_timeout)
    except (serial.SerialException, OSError) as e:
        raise DeviceOpenError(f"Error opening port {port}: {e}") from e

    previous = ser.get_settings()
    try:
        ser.apply_settings(config.to_serial_settings())
    except (serial.SerialException, ValueError, OSError) as e:
        ser.close()
        raise ConfigurationError(f"Cannot configure {port} @ {config.baud_rate}: {e}") from e

    _log.info("Serial open %s @ %d bps", port, config.baud_rate)
    return Connection(ser, config, previous, saved_termios)


def _capture_termios(port: str) -> list | None:
    """
    Настройки терминала до того, как pyserial их перепишет.
    None вне POSIX или если устройство не открывается (это отловит pyserial).
    """
    if os.name != "posix":
        return None
    import termios

    try:
        fd = os.open(port, os.O_RDWR | os.O_NOCTTY | os.O_NONBLOCK)
    except OSError as e:
        _log.debug("Cannot snapshot line settings of %s: %s", port, e)
        return None
    try:
        return termios.tcgetattr(fd)
    except termios.error as e:
        _log.debug("%s is not a terminal: %s", port, e)
        return None
    finally:
        os.close(fd)


def _restore_termios(ser: serial.Serial, saved: list, port: str) -> None:
    import termios

    try:
        termios.tcsetattr(ser.fileno(), termios.TCSANOW, saved)
    except (termios.error, serial.SerialException, OSError) as e:
        _log.warning("Could not restore line settings on %s: %s", port, e)
