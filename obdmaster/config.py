from pydantic import BaseModel, Field
from functools import lru_cache

class Settings(BaseModel):
    serial_port: str = Field("/dev/ttyUSB0")
    baud_rate:  int  = Field(9600)
    open_settle_delay:    float = 0.1     # 100 мс после открытия порта
    command_settle_delay: float = 0.1     # пауза после каждой AT-команды
    probe_timeout:    float = Field(1.0)  # AT -> OK
    request_timeout:  float = Field(2.0)  # 01xx -> 41 xx ...
    raw_read_timeout: float = Field(1.0)

@lru_cache
def get_settings() -> Settings:
    return Settings()
