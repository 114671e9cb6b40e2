"""ObdMaster – OBD-II Mode 01 over an ELM327 serial adapter."""

from .config import Settings, get_settings
from .enums import BaudRate, ObdPid, SessionState
from .errors import (
    ConfigurationError,
    DeviceOpenError,
    InvalidResponse,
    IoError,
    NoResponse,
    NotConnected,
    ObdError,
    ParseError,
)
from .models import PidRequest, PidResponse
from .session import ObdSession

__version__ = "1.0.0"
