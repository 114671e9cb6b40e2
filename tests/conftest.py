import time

import pytest

from obdmaster.elm.config_ext import SerialConfig
from obdmaster.errors import IoError


class FakeConnection:
    """Stands in for elm.transport.Connection: scripted replies, recorded writes."""

    def __init__(self, port="/dev/ttyFAKE", baud_rate=9600, replies=None):
        self.config = SerialConfig(port=port, baud_rate=baud_rate)
        self.port = port
        self.replies = list(replies or [])
        self.written = []
        self.read_calls = []
        self.flushes = 0
        self.closed = 0
        self.fail_write = False
        self.short_write = False
        self.read_error = None

    @property
    def is_open(self):
        return self.closed == 0

    def write(self, data):
        if self.fail_write:
            raise IoError("write failed")
        self.written.append(bytes(data))
        return len(data) - 1 if self.short_write else len(data)

    def read_with_timeout(self, max_len, timeout):
        self.read_calls.append((max_len, timeout))
        if self.read_error is not None:
            raise self.read_error
        if not self.replies:
            return b""
        return self.replies.pop(0)[:max_len]

    def flush_input(self):
        self.flushes += 1

    def close(self):
        self.closed += 1


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr(time, "sleep", calls.append)
    return calls


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def opener(monkeypatch, fake_conn):
    """Patch the session's transport so ``open`` hands out ``fake_conn``."""
    calls = []

    def fake_open(port, baud_rate):
        calls.append((port, baud_rate))
        return fake_conn

    monkeypatch.setattr("obdmaster.session.open_connection", fake_open)
    return calls


@pytest.fixture
def conn_factory():
    return FakeConnection
