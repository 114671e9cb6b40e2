from typing import Literal

import serial
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import BaudRate

SUPPORTED_BAUDS = tuple(int(b) for b in BaudRate)
DEFAULT_BAUD    = int(BaudRate.B9600)

class SerialConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    port:         str   = Field("/dev/ttyUSB0")
    baud_rate:    int   = Field(DEFAULT_BAUD)
    bytesize:     int   = serial.EIGHTBITS
    parity:       Literal["O", "E", "N"] = "N"
    stopbits:     float = serial.STOPBITS_ONE
    xonxoff:      bool  = False
    rtscts:       bool  = False
    dsrdtr:       bool  = False
    read_timeout: float = Field(0.5)          # VTIME = 5 (0.5 с)

    @field_validator("baud_rate", mode="before")
    @classmethod
    def _known_baud(cls, value):
        # неизвестная скорость -> 9600, без ошибки
        try:
            value = int(value)
        except (TypeError, ValueError):
            return DEFAULT_BAUD
        return value if value in SUPPORTED_BAUDS else DEFAULT_BAUD

    def to_serial_settings(self) -> dict:
        """Dict in the shape of ``serial.Serial.get_settings()``."""
        return {
            "baudrate":   self.baud_rate,
            "bytesize":   self.bytesize,
            "parity":     {
                "O": serial.PARITY_ODD,
                "E": serial.PARITY_EVEN,
                "N": serial.PARITY_NONE,
            }[self.parity],
            "stopbits":   self.stopbits,
            "xonxoff":    self.xonxoff,
            "rtscts":     self.rtscts,
            "dsrdtr":     self.dsrdtr,
            "timeout":    self.read_timeout,
        }
