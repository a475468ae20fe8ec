"""Webhook event payloads as a tagged union.

Station and vehicle events share several tags (``connected``, ``locked``...),
so the target is decided first from the payload's ``station`` / ``vehicle``
field, then the ``event`` tag selects the variant. Unknown tags become an
explicit ``UnknownEvent`` instead of failing or being silently dropped.

Deprecated station tags (``shake``, ``high-temp``, ``critical-energy``,
``spot-defect``) are rewritten to ``alert`` / ``fault`` events whose
``data.type`` carries the old tag.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from .models.station import (
    AlertStationEvent,
    BadgeRFIDStationEvent,
    BootStationEvent,
    ConnectedStationEvent,
    DeprecatedEventStationType,
    DisconnectedStationEvent,
    EventStationType,
    FaultStationEvent,
    LockedStationEvent,
    StateStationEvent,
    UnexpectedUnlockStationEvent,
    UnlockedStationEvent,
)
from .models.vehicle import (
    ConnectedVehicleEvent,
    DisconnectedVehicleEvent,
    EventVehicleType,
    LocationVehicleEvent,
    LockedVehicleEvent,
    LockFailedVehicleEvent,
    StatusVehicleEvent,
    UnlockedVehicleEvent,
)
from .utils.logging import get_logger

log = get_logger(__name__)

KnotStationEvent = Annotated[
    Union[
        ConnectedStationEvent,
        DisconnectedStationEvent,
        UnlockedStationEvent,
        LockedStationEvent,
        BootStationEvent,
        StateStationEvent,
        UnexpectedUnlockStationEvent,
        BadgeRFIDStationEvent,
        AlertStationEvent,
        FaultStationEvent,
    ],
    Field(discriminator="event"),
]

KnotVehicleEvent = Annotated[
    Union[
        ConnectedVehicleEvent,
        DisconnectedVehicleEvent,
        UnlockedVehicleEvent,
        LockedVehicleEvent,
        LocationVehicleEvent,
        StatusVehicleEvent,
        LockFailedVehicleEvent,
    ],
    Field(discriminator="event"),
]


class UnknownEvent(BaseModel):
    target: Optional[Literal["station", "vehicle"]] = None
    event: Optional[str] = None
    payload: Dict[str, Any]


KnotEvent = Union[KnotStationEvent, KnotVehicleEvent, UnknownEvent]

_station_adapter: TypeAdapter = TypeAdapter(KnotStationEvent)
_vehicle_adapter: TypeAdapter = TypeAdapter(KnotVehicleEvent)

_STATION_TAGS = {t.value for t in EventStationType}
_VEHICLE_TAGS = {t.value for t in EventVehicleType}

_ALERT_ALIASES = {
    DeprecatedEventStationType.SHAKE.value,
    DeprecatedEventStationType.HIGH_TEMP.value,
    DeprecatedEventStationType.ENERGY_CRITICAL.value,
}
_FAULT_ALIASES = {DeprecatedEventStationType.SPOT_DEFECT.value}


def _upgrade_deprecated(payload: Dict[str, Any]) -> Dict[str, Any]:
    tag = payload.get("event")
    if tag in _ALERT_ALIASES:
        new_tag = EventStationType.ALERT.value
    elif tag in _FAULT_ALIASES:
        new_tag = EventStationType.FAULT.value
    else:
        return payload
    log.warning(f"deprecated station event '{tag}' read as '{new_tag}'")
    data = payload.get("data")
    data = dict(data) if isinstance(data, Mapping) else {}
    data["type"] = tag
    return {**payload, "event": new_tag, "data": data}


def _target(payload: Mapping[str, Any]) -> Optional[str]:
    if "vehicle" in payload and "station" not in payload:
        return "vehicle"
    if "station" in payload:
        return "station"
    # station `locked` events were historically emitted without `station`
    data = payload.get("data")
    if payload.get("event") == EventStationType.LOCKED.value and isinstance(data, Mapping) and "spot" in data:
        return "station"
    return None


def parse_event(payload: Mapping[str, Any]) -> KnotEvent:
    """Parse a decoded webhook JSON body into its event variant.

    Raises pydantic.ValidationError when a known tag carries a malformed body.
    """
    payload = dict(payload)
    target = _target(payload)
    if target == "station":
        payload = _upgrade_deprecated(payload)
        if payload.get("event") in _STATION_TAGS:
            return _station_adapter.validate_python(payload)
    elif target == "vehicle":
        if payload.get("event") in _VEHICLE_TAGS:
            return _vehicle_adapter.validate_python(payload)
    tag = payload.get("event")
    return UnknownEvent(target=target, event=tag if isinstance(tag, str) else None, payload=payload)


__all__ = [
    "KnotEvent",
    "KnotStationEvent",
    "KnotVehicleEvent",
    "UnknownEvent",
    "parse_event",
]
