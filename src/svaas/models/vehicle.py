from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt


class EventVehicleType(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNLOCKED = "unlocked"
    LOCKED = "locked"
    LOCATION = "location"
    STATUS = "status"
    LOCK_FAILED = "lock-failed"


class VehicleSoundType(str, Enum):
    GEO_FENCE = "geo-fence"
    TOOT = "toot"
    LOW_BATTERY = "low_battery"


class VehicleLightState(str, Enum):
    OFF = "off"
    ON = "on"
    FLICKER = "flicker"


class VehicleSpeedMode(IntEnum):
    ECO = 1
    NORMAL = 2
    SPORT = 3


SpeedLimit = Annotated[StrictInt, Field(ge=6, le=30)]


class VehicleConfig(BaseModel):
    """Configuration pushed to a vehicle; unset fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    low_speed_limit: Optional[SpeedLimit] = Field(default=None, alias="lowSpeedLimit")
    medium_speed_limit: Optional[SpeedLimit] = Field(default=None, alias="mediumSpeedLimit")
    high_speed_limit: Optional[SpeedLimit] = Field(default=None, alias="highSpeedLimit")
    cruise_control: Optional[StrictBool] = Field(default=None, alias="cruiseControl")
    button_switch_speed_mode: Optional[StrictBool] = Field(default=None, alias="buttonSwitchSpeedMode")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --- events -----------------------------------------------------------------

class _VehicleEventBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    vehicle: int


class ConnectedVehicleEvent(_VehicleEventBase):
    event: Literal["connected"]


class DisconnectedVehicleEvent(_VehicleEventBase):
    event: Literal["disconnected"]
    data: Optional[Dict[str, Any]] = None


class UnlockedVehicleData(BaseModel):
    unlock: int
    time: int


class UnlockedVehicleEvent(_VehicleEventBase):
    event: Literal["unlocked"]
    data: UnlockedVehicleData


class LockedVehicleData(BaseModel):
    lock: int
    time: int


class LockedVehicleEvent(_VehicleEventBase):
    event: Literal["locked"]
    data: LockedVehicleData


class ValidLocation(BaseModel):
    status: Literal["valid"]
    latitude: float
    longitude: float


class InvalidLocation(BaseModel):
    status: Literal["invalid"]


class LocationVehicleEvent(_VehicleEventBase):
    event: Literal["location"]
    data: Annotated[Union[ValidLocation, InvalidLocation], Field(discriminator="status")]


class StatusData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    online: bool
    locked: bool
    battery_percentage: float = Field(alias="batteryPercentage")
    odometer: float


class StatusVehicleEvent(_VehicleEventBase):
    event: Literal["status"]
    data: StatusData


class LockFailedData(BaseModel):
    message: str


class LockFailedVehicleEvent(_VehicleEventBase):
    event: Literal["lock-failed"]
    data: LockFailedData


# --- read endpoints ---------------------------------------------------------

class VehicleInformation(BaseModel):
    model_config = ConfigDict(extra="allow")

    vehicle_id: int
    model_name: str
    model_type: str
    manufacturer: str
    activation_date: Optional[datetime] = None


class EnabledVehicle(BaseModel):
    model_config = ConfigDict(extra="allow")

    vehicle_id: int
    activation_date: Optional[datetime] = None


class DisabledVehicle(BaseModel):
    model_config = ConfigDict(extra="allow")

    vehicle_id: int
