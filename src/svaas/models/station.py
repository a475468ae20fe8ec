from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class EventStationType(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNLOCKED = "unlocked"
    LOCKED = "locked"
    BOOT = "boot"
    STATE = "state"
    UNEXPECTED_UNLOCK = "unexpected-unlock"
    BADGE_RFID = "badge-rfid"
    ALERT = "alert"
    FAULT = "fault"


class DeprecatedEventStationType(str, Enum):
    """Wire tags replaced by ALERT / FAULT; still accepted on input."""

    SHAKE = "shake"
    HIGH_TEMP = "high-temp"
    ENERGY_CRITICAL = "critical-energy"
    SPOT_DEFECT = "spot-defect"


class ConfirmLockAnswer(IntEnum):
    ACCEPT = 0
    ACCEPT_CACHE = 1
    DENY = 2


class BadgeReaderStatus(IntEnum):
    LINK = 0
    SUCCEEDED = 1
    FAILED = 2


class StationConfigType(str, Enum):
    VOLUME = "volume"


# --- events -----------------------------------------------------------------

class _StationEventBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    station: int


class ConnectedStationEvent(_StationEventBase):
    event: Literal["connected"]


class DisconnectedData(BaseModel):
    reason: str
    error: bool


class DisconnectedStationEvent(_StationEventBase):
    event: Literal["disconnected"]
    data: DisconnectedData


class UnlockedStationData(BaseModel):
    spot: int
    unlock: int


class UnlockedStationEvent(_StationEventBase):
    event: Literal["unlocked"]
    data: UnlockedStationData


class LockedStationData(BaseModel):
    spot: int
    vehicle: int
    cache_accepted: bool
    time: int


class LockedStationEvent(_StationEventBase):
    # Historically sent without the station field.
    station: Optional[int] = None
    event: Literal["locked"]
    data: LockedStationData


class BootStationEvent(_StationEventBase):
    event: Literal["boot"]


class StateData(BaseModel):
    mainboard: int
    vehicles: List[int]


class StateStationEvent(_StationEventBase):
    event: Literal["state"]
    data: StateData


class SpotData(BaseModel):
    spot: int


class UnexpectedUnlockStationEvent(_StationEventBase):
    event: Literal["unexpected-unlock"]
    data: SpotData


class BadgeData(BaseModel):
    badge_id: str


class BadgeRFIDStationEvent(_StationEventBase):
    event: Literal["badge-rfid"]
    data: BadgeData


class IncidentData(BaseModel):
    """Payload of alert/fault events; ``type`` names the incident, extra fields are kept."""

    model_config = ConfigDict(extra="allow")

    type: str
    spot: Optional[int] = None


class AlertStationEvent(_StationEventBase):
    event: Literal["alert"]
    data: IncidentData


class FaultStationEvent(_StationEventBase):
    event: Literal["fault"]
    data: IncidentData


# --- read endpoints ---------------------------------------------------------

class StationSpot(BaseModel):
    model_config = ConfigDict(extra="allow")

    spot_id: int
    vehicle: Optional[int] = None
    lock: Literal[0, 1]


class StationInformation(BaseModel):
    model_config = ConfigDict(extra="allow")

    station_id: int
    model_name: str
    manufacturer: str
    model_type: str
    spots_count: int
    activation_date: Optional[datetime] = None
    online: bool
    spots: List[StationSpot] = []


class EnabledStation(BaseModel):
    model_config = ConfigDict(extra="allow")

    station_id: int
    spots_count: int
    activation_date: Optional[datetime] = None
    online: bool


class DisabledStation(BaseModel):
    model_config = ConfigDict(extra="allow")

    station_id: int
    spots_count: int
