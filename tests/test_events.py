import pytest
from pydantic import ValidationError

from svaas.events import UnknownEvent, parse_event
from svaas.models.station import (
    AlertStationEvent,
    FaultStationEvent,
    LockedStationEvent,
    StateStationEvent,
    UnlockedStationEvent,
)
from svaas.models.vehicle import (
    InvalidLocation,
    LocationVehicleEvent,
    LockedVehicleEvent,
    StatusVehicleEvent,
    ValidLocation,
)


def test_station_unlocked():
    ev = parse_event({"station": 12, "event": "unlocked", "data": {"spot": 3, "unlock": 1001}})
    assert isinstance(ev, UnlockedStationEvent)
    assert (ev.station, ev.data.spot, ev.data.unlock) == (12, 3, 1001)


def test_station_state():
    ev = parse_event({"station": 4, "event": "state", "data": {"mainboard": 7, "vehicles": [0, 51, 0]}})
    assert isinstance(ev, StateStationEvent)
    assert ev.data.vehicles == [0, 51, 0]


def test_locked_without_station_is_a_station_event():
    ev = parse_event({"event": "locked", "data": {"spot": 2, "vehicle": 51, "cache_accepted": False, "time": 1}})
    assert isinstance(ev, LockedStationEvent)
    assert ev.station is None


def test_vehicle_locked_shares_tag_with_station():
    ev = parse_event({"vehicle": 51, "event": "locked", "data": {"lock": 0, "time": 1700000000}})
    assert isinstance(ev, LockedVehicleEvent)


@pytest.mark.parametrize("tag", ["shake", "high-temp", "critical-energy"])
def test_deprecated_tags_become_alert(tag):
    ev = parse_event({"station": 9, "event": tag, "data": {"spot": 1}})
    assert isinstance(ev, AlertStationEvent)
    assert ev.event == "alert"
    assert ev.data.type == tag
    assert ev.data.spot == 1


def test_spot_defect_becomes_fault():
    ev = parse_event({"station": 9, "event": "spot-defect"})
    assert isinstance(ev, FaultStationEvent)
    assert ev.data.type == "spot-defect"


def test_alert_keeps_extra_fields():
    ev = parse_event({"station": 9, "event": "alert", "data": {"type": "vandalism", "level": 3}})
    assert ev.data.type == "vandalism"
    assert ev.data.model_extra == {"level": 3}


def test_vehicle_location_variants():
    valid = parse_event({"vehicle": 5, "event": "location", "data": {"status": "valid", "latitude": 48.8, "longitude": 2.3}})
    invalid = parse_event({"vehicle": 5, "event": "location", "data": {"status": "invalid"}})
    assert isinstance(valid, LocationVehicleEvent) and isinstance(valid.data, ValidLocation)
    assert isinstance(invalid.data, InvalidLocation)


def test_vehicle_status_alias():
    ev = parse_event({
        "vehicle": 5,
        "event": "status",
        "data": {"online": True, "locked": False, "batteryPercentage": 77, "odometer": 1234.5},
    })
    assert isinstance(ev, StatusVehicleEvent)
    assert ev.data.battery_percentage == 77


@pytest.mark.parametrize(
    "payload,target",
    [
        ({"station": 1, "event": "teleported"}, "station"),
        ({"vehicle": 1, "event": "boot"}, "vehicle"),
        ({"event": "connected"}, None),
        ({"vehicle": 1}, "vehicle"),
    ],
)
def test_unknown_events_are_explicit(payload, target):
    ev = parse_event(payload)
    assert isinstance(ev, UnknownEvent)
    assert ev.target == target
    assert ev.payload == payload


def test_known_tag_with_bad_body_raises():
    with pytest.raises(ValidationError):
        parse_event({"station": 1, "event": "unlocked", "data": {"spot": "left"}})
