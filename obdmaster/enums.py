from enum import Enum, IntEnum

class ObdPid(IntEnum):              # Mode 01, current data
    ENGINE_LOAD     = 0x04          # %      A*100/255
    COOLANT_TEMP    = 0x05          # °C     A-40
    FUEL_PRESSURE   = 0x0A          # kPa    (raw)
    ENGINE_RPM      = 0x0C          # RPM    /4
    VEHICLE_SPEED   = 0x0D          # km/h
    INTAKE_AIR_TEMP = 0x0F          # °C     (raw)
    MAF_FLOW        = 0x10          # g/s    (raw)
    THROTTLE_POS    = 0x11          # %      (raw)
    FUEL_LEVEL      = 0x2F          # %      A*100/255
    DISTANCE        = 0x31          # km since codes cleared (raw)

class BaudRate(IntEnum):
    B9600   = 9600
    B19200  = 19200
    B38400  = 38400
    B57600  = 57600
    B115200 = 115200

class SessionState(str, Enum):
    CLOSED    = "closed"
    OPENING   = "opening"
    HANDSHAKE = "handshake"
    READY     = "ready"
