"""Tests for the pyserial-backed transport, with serial.Serial mocked out."""

import os
from unittest.mock import call, patch

import pytest
import serial
from pydantic import ValidationError

from obdmaster.elm.config_ext import SUPPORTED_BAUDS, SerialConfig
from obdmaster.elm.transport import open_connection
from obdmaster.errors import ConfigurationError, DeviceOpenError, IoError

PREVIOUS = {"baudrate": 115200, "bytesize": 8, "parity": "N", "stopbits": 1, "timeout": None}


@pytest.fixture
def serial_cls():
    with patch("obdmaster.elm.transport.serial.Serial") as cls, \
            patch("obdmaster.elm.transport._capture_termios", return_value=None):
        ser = cls.return_value
        ser.is_open = True
        ser.timeout = 0.5
        ser.in_waiting = 0
        ser.get_settings.return_value = dict(PREVIOUS)
        yield cls


@pytest.fixture
def ser(serial_cls):
    return serial_cls.return_value


class TestOpen:
    @pytest.mark.parametrize("baud", SUPPORTED_BAUDS)
    def test_supported_baud_rates(self, ser, baud):
        conn = open_connection("/dev/ttyUSB0", baud)
        assert conn.is_open
        assert conn.config.baud_rate == baud
        applied = ser.apply_settings.call_args[0][0]
        assert applied["baudrate"] == baud

    def test_line_is_8n1_without_flow_control(self, ser):
        open_connection("/dev/ttyUSB0", 38400)
        applied = ser.apply_settings.call_args[0][0]
        assert applied["bytesize"] == serial.EIGHTBITS
        assert applied["parity"] == serial.PARITY_NONE
        assert applied["stopbits"] == serial.STOPBITS_ONE
        assert applied["xonxoff"] is False
        assert applied["rtscts"] is False
        assert applied["dsrdtr"] is False
        assert applied["timeout"] == 0.5

    @pytest.mark.parametrize("baud", [4800, 12345, 0])
    def test_unknown_baud_falls_back_to_9600(self, ser, baud):
        conn = open_connection("/dev/ttyUSB0", baud)
        assert conn.config.baud_rate == 9600
        assert ser.apply_settings.call_args[0][0]["baudrate"] == 9600

    def test_missing_device(self, serial_cls):
        serial_cls.side_effect = serial.SerialException("No such file or directory")
        with pytest.raises(DeviceOpenError):
            open_connection("/dev/ttyNOPE", 9600)

    def test_settings_rejected(self, ser):
        ser.apply_settings.side_effect = serial.SerialException("tcsetattr failed")
        with pytest.raises(ConfigurationError):
            open_connection("/dev/ttyUSB0", 9600)
        ser.close.assert_called_once()

    def test_empty_port_rejected_before_open(self, serial_cls):
        with pytest.raises(ValueError):
            open_connection("", 9600)
        serial_cls.assert_not_called()


class TestClose:
    def test_restores_previous_settings(self, ser):
        conn = open_connection("/dev/ttyUSB0", 38400)
        conn.close()
        assert ser.apply_settings.call_args_list[-1] == call(PREVIOUS)
        ser.close.assert_called_once()
        assert not conn.is_open

    def test_idempotent(self, ser):
        conn = open_connection("/dev/ttyUSB0", 9600)
        conn.close()
        conn.close()
        ser.close.assert_called_once()

    def test_restore_failure_still_releases_port(self, ser):
        conn = open_connection("/dev/ttyUSB0", 9600)
        ser.apply_settings.side_effect = serial.SerialException("gone")
        conn.close()
        ser.close.assert_called_once()


class TestWrite:
    def test_returns_count(self, ser):
        ser.write.return_value = 5
        conn = open_connection("/dev/ttyUSB0", 9600)
        assert conn.write(b"010C\r") == 5
        ser.write.assert_called_once_with(b"010C\r")

    def test_os_failure_is_io_error(self, ser):
        ser.write.side_effect = serial.SerialException("write failed")
        conn = open_connection("/dev/ttyUSB0", 9600)
        with pytest.raises(IoError):
            conn.write(b"AT\r")

    def test_after_close(self, ser):
        conn = open_connection("/dev/ttyUSB0", 9600)
        conn.close()
        with pytest.raises(IoError):
            conn.write(b"AT\r")

    def test_text_rejected(self, ser):
        conn = open_connection("/dev/ttyUSB0", 9600)
        with pytest.raises(TypeError):
            conn.write("AT\r")


class TestReadWithTimeout:
    def test_timeout_returns_empty(self, ser):
        ser.read.return_value = b""
        conn = open_connection("/dev/ttyUSB0", 9600)
        assert conn.read_with_timeout(255, 2.0) == b""
        assert ser.timeout == 0.5

    def test_protocol_timeout_only_for_the_read(self, ser):
        seen = []

        def read(n):
            seen.append(ser.timeout)
            return b""

        ser.read.side_effect = read
        conn = open_connection("/dev/ttyUSB0", 9600)
        conn.read_with_timeout(255, 2.0)
        assert seen == [2.0]
        # line-level timeout is back for the next caller
        assert ser.timeout == 0.5

    def test_line_timeout_restored_after_failure(self, ser):
        ser.read.side_effect = serial.SerialException("gone")
        conn = open_connection("/dev/ttyUSB0", 9600)
        with pytest.raises(IoError):
            conn.read_with_timeout(255, 1.0)
        assert ser.timeout == 0.5

    def test_takes_what_is_buffered(self, ser):
        ser.read.side_effect = [b"4", b"1 0C 1A F8"]
        ser.in_waiting = 10
        conn = open_connection("/dev/ttyUSB0", 9600)
        assert conn.read_with_timeout(255, 2.0) == b"41 0C 1A F8"
        assert ser.read.call_args_list == [call(1), call(10)]

    def test_never_exceeds_max_len(self, ser):
        ser.read.side_effect = [b"4", b"1 0"]
        ser.in_waiting = 10
        conn = open_connection("/dev/ttyUSB0", 9600)
        assert conn.read_with_timeout(4, 1.0) == b"41 0"
        assert ser.read.call_args_list == [call(1), call(3)]

    def test_does_not_wait_for_more(self, ser):
        ser.read.side_effect = [b"O"]
        ser.in_waiting = 0
        conn = open_connection("/dev/ttyUSB0", 9600)
        assert conn.read_with_timeout(255, 1.0) == b"O"
        assert ser.read.call_count == 1

    def test_os_failure_is_io_error(self, ser):
        ser.read.side_effect = serial.SerialException("device reports readiness but returned no data")
        conn = open_connection("/dev/ttyUSB0", 9600)
        with pytest.raises(IoError):
            conn.read_with_timeout(255, 1.0)

    def test_bad_arguments(self, ser):
        conn = open_connection("/dev/ttyUSB0", 9600)
        with pytest.raises(ValueError):
            conn.read_with_timeout(0, 1.0)
        with pytest.raises(ValueError):
            conn.read_with_timeout(10, -1)
        ser.read.assert_not_called()


def test_flush_input(ser):
    conn = open_connection("/dev/ttyUSB0", 9600)
    conn.flush_input()
    ser.reset_input_buffer.assert_called_once()


def test_serial_config_is_frozen():
    cfg = SerialConfig(port="/dev/ttyUSB0", baud_rate=19200)
    with pytest.raises(ValidationError):
        cfg.baud_rate = 9600


@pytest.fixture
def pty_port():
    termios = pytest.importorskip("termios")
    master, slave = os.openpty()
    attrs = termios.tcgetattr(slave)
    attrs[3] |= termios.ICANON
    attrs[4] = attrs[5] = termios.B19200
    termios.tcsetattr(slave, termios.TCSANOW, attrs)
    yield os.ttyname(slave), slave
    os.close(slave)
    os.close(master)


def test_close_restores_device_line_settings(pty_port):
    import termios

    path, fd = pty_port
    conn = open_connection(path, 38400)
    during = termios.tcgetattr(fd)
    assert during[4] == termios.B38400
    assert not during[3] & termios.ICANON

    conn.close()
    after = termios.tcgetattr(fd)
    assert after[4] == termios.B19200
    assert after[5] == termios.B19200
    assert after[3] & termios.ICANON
