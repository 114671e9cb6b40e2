"""
Ошибки драйвера OBD-II.

Все протокольные сбои наследуются от ``ObdError``; ошибки вызова
(неверный PID, не-bytes вместо bytes) остаются ``ValueError``/``TypeError``
и поднимаются до любого обращения к порту.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PidResponse


class ObdError(Exception):
    """Base class for every adapter/protocol failure."""


class DeviceOpenError(ObdError):
    """Serial device could not be opened (missing, busy, no permission)."""


class ConfigurationError(ObdError):
    """Line settings could not be applied to an opened device."""


class IoError(ObdError):
    """Write or read failed at the OS level."""


class NoResponse(ObdError):
    """Adapter stayed silent for the whole timeout window."""


class ParseError(ObdError):
    """Non-empty reply did not match ``41 <PID> <A> <B>``; ``response`` has ``valid=False``."""

    def __init__(self, message: str, raw: str = "", response: PidResponse | None = None):
        super().__init__(message)
        self.raw = raw
        self.response = response


class InvalidResponse(ObdError):
    """A PidResponse with ``valid=False`` reached a typed accessor."""


class NotConnected(ObdError):
    """Session is not in the READY state."""
