from pydantic import BaseModel, ConfigDict, Field, conint
from typing import Literal


class PidRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    pid:  conint(ge=0, le=0xFF)
    mode: Literal["01"] = "01"            # current data

    @property
    def command(self) -> str:
        return f"{self.mode}{self.pid:02X}\r"


class PidResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    pid:          conint(ge=0, le=0xFF)
    raw_value:    conint(ge=0, le=0xFFFFFFFF) = 0    # (A << 8) | B, до масштабирования
    valid:        bool = False
    unit:         str  = Field("", max_length=15)
    scaled_value: int  = 0                            # может быть < 0 (температура)
