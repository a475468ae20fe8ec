"""Knot Stations and Vehicles as a Service client.

Every command validates its arguments synchronously and returns an awaitable;
a bad argument therefore raises ``SVaaSValidationError`` at call time, before
any request is signed or sent::

    async with KnotSVaaS(key_id="...", private_key=pem) as svaas:
        res = await svaas.unlock_spot(12, 3, 1001)
"""
from __future__ import annotations

import json
import time
import warnings
from enum import Enum
from typing import Any, Awaitable, List, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from .config import ClientOptions
from .errors import SVaaSConfigError, SVaaSRequestError, SVaaSValidationError
from .httpsig.signer import RequestDescriptor, SigningKeyMaterial, build_signed_request
from .httpsig.verifier import SignatureEvent, SignatureVerifier
from .models.common import KnotCode, RequestResults
from .models.station import (
    BadgeReaderStatus,
    ConfirmLockAnswer,
    DisabledStation,
    EnabledStation,
    StationConfigType,
    StationInformation,
)
from .models.vehicle import (
    DisabledVehicle,
    EnabledVehicle,
    VehicleConfig,
    VehicleInformation,
    VehicleLightState,
    VehicleSoundType,
    VehicleSpeedMode,
)
from .obs.prom import observe_request
from .utils.logging import get_logger

log = get_logger(__name__)

API_VERSION = "v1"
MAX_LABEL_LENGTH = 50

E = TypeVar("E", bound=Enum)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_int(value: Any, minimum: int, message: str) -> int:
    if not _is_int(value) or value < minimum:
        raise SVaaSValidationError(message)
    return value


def _check_optional_bool(value: Any, name: str) -> Optional[bool]:
    if value is not None and not isinstance(value, bool):
        raise SVaaSValidationError(f"{name} should be a boolean or None and not a {type(value).__name__}")
    return value


def _check_enum(enum_cls: Type[E], value: Any, message: str) -> E:
    if isinstance(value, bool):
        raise SVaaSValidationError(message)
    try:
        return enum_cls(value)
    except ValueError:
        raise SVaaSValidationError(message) from None


def _check_label(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise SVaaSValidationError(f"The given {name} should be a string and not a {type(value).__name__}")
    if len(value) > MAX_LABEL_LENGTH:
        raise SVaaSValidationError(f"The given {name} exceeds the authorised size ({MAX_LABEL_LENGTH})")
    return value


class KnotSVaaS:
    """Knot Stations and Vehicles as a Service SDK main class."""

    def __init__(self, options: Union[ClientOptions, Mapping[str, Any], None] = None, **kwargs: Any):
        if options is None:
            options = ClientOptions.build(**kwargs)
        elif isinstance(options, Mapping):
            options = ClientOptions.build(**{**options, **kwargs})
        elif not isinstance(options, ClientOptions):
            raise SVaaSConfigError(f"Options should be a mapping or ClientOptions and not a {type(options).__name__}")
        elif kwargs:
            options = ClientOptions.build(**{**options.model_dump(), **kwargs})

        self._options = options
        self._signing = SigningKeyMaterial.from_pem(
            options.key_id,
            options.private_key,
            algorithm=options.signing_algorithm,
            hash=options.signing_hash,
        )
        self._verifier: Optional[SignatureVerifier] = None
        if options.knot_public_key is not None:
            try:
                self._verifier = SignatureVerifier(options.knot_public_key)
            except ValueError as e:
                raise SVaaSConfigError(f"The given knotPublicKey is invalid: {e}") from e
        http_config = {"timeout": options.timeout, **options.http_client_config}
        try:
            self._http = httpx.AsyncClient(**http_config)
        except (TypeError, ValueError) as e:
            raise SVaaSConfigError(f"Invalid http_client_config: {e}") from e
        log.debug(
            f"KnotSVaaS ready stations={options.stations_endpoint} vehicles={options.vehicles_endpoint} "
            f"key_id={options.key_id} alg={self._signing.algorithm}/{self._signing.hash}"
        )

    @property
    def options(self) -> ClientOptions:
        return self._options

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "KnotSVaaS":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # region Station commands
    def reboot_station(self, station_id: int) -> Awaitable[RequestResults]:
        """Request a station to reboot."""
        return self._make_station_request("POST", API_VERSION, "reboot", station_id)

    def ping_station(self, station_id: int) -> Awaitable[RequestResults]:
        return self._make_station_request("POST", API_VERSION, "ping", station_id)

    def configure_station(self, station_id: int, config_type: Union[StationConfigType, str], value: float) -> Awaitable[RequestResults]:
        """Update a station configuration (currently only ``volume``)."""
        config_type = _check_enum(StationConfigType, config_type, "Config type should be equal to 'volume'")
        if not _is_number(value):
            raise SVaaSValidationError("Config value should be a number")
        return self._make_station_request("POST", API_VERSION, "config", station_id, {
            "config": config_type.value,
            "value": value,
        })

    def unlock_spot(self, station_id: int, spot_id: int, unlock_id: int,
                    ignore_vehicle_response: Optional[bool] = None) -> Awaitable[RequestResults]:
        """Unlock a spot of a station.

        ``unlock_id`` is echoed back in the unlocked event. With
        ``ignore_vehicle_response`` the station does not wait for the vehicle's
        own unlock answer, which allows maintenance on a broken vehicle.
        """
        _check_int(spot_id, 1, "Spot ID should be an integer greater or equal to 1")
        _check_int(unlock_id, 1, "Unlock ID should be an integer greater or equal to 1")
        _check_optional_bool(ignore_vehicle_response, "Ignore vehicle response")
        return self._make_station_request("POST", API_VERSION, "unlock", station_id, {
            "spot": spot_id,
            "unlock": unlock_id,
            "ignore_vehicle_response": ignore_vehicle_response,
        })

    def scan_all_station_spot(self, station_id: int) -> Awaitable[RequestResults]:
        """Rescan every spot; the station re-sends a locked event per docked vehicle."""
        return self._make_station_request("POST", API_VERSION, "refresh", station_id, {})

    def scan_station_spot(self, station_id: int, spot_id: int) -> Awaitable[RequestResults]:
        _check_int(spot_id, 1, "Spot ID should be an integer greater or equal to 1")
        return self._make_station_request("POST", API_VERSION, "refresh", station_id, {"spot": spot_id})

    def confirm_lock_spot(self, station_id: int, spot_id: int,
                          accepted: Union[ConfirmLockAnswer, int]) -> Awaitable[RequestResults]:
        """Answer a locked event."""
        _check_int(spot_id, 1, "Spot ID should be an integer greater or equal to 1")
        accepted = _check_enum(ConfirmLockAnswer, accepted, "Accepted should be equal to 0, 1 or 2")
        return self._make_station_request("POST", API_VERSION, "lock-response", station_id, {
            "spot": spot_id,
            "accepted": int(accepted),
        })

    def badge_reader_feedback(self, station_id: int, status: Union[BadgeReaderStatus, int],
                              spot_id: Optional[int] = None) -> Awaitable[RequestResults]:
        """Show a success/failure feedback on the badge reader (spot required for station v6)."""
        status = _check_enum(BadgeReaderStatus, status, "Badge reader status should be equal to 0, 1 or 2")
        if spot_id is not None:
            _check_int(spot_id, 1, "Spot ID should be an integer greater or equal to 1")
        return self._make_station_request("POST", API_VERSION, "badge", station_id, {
            "status": int(status),
            "spot": spot_id,
        })

    def enable_station(self, station_id: int) -> Awaitable[RequestResults]:
        return self._make_station_request("POST", API_VERSION, "enable", station_id)

    def change_station_label(self, station_id: int, label: str) -> Awaitable[RequestResults]:
        _check_label(label, "label")
        return self._make_station_request("PUT", API_VERSION, "label", station_id, {"label": label})

    def change_station_label_and_group(self, station_id: int, label: str, group: str) -> Awaitable[RequestResults]:
        _check_label(label, "label")
        _check_label(group, "group")
        return self._make_station_request("PUT", API_VERSION, "label", station_id, {"label": label, "group": group})

    def get_station_information(self, station_id: int) -> Awaitable[RequestResults[StationInformation]]:
        return self._make_station_request("GET", API_VERSION, "", station_id, model=StationInformation)

    def get_enabled_stations(self) -> Awaitable[RequestResults[List[EnabledStation]]]:
        return self._make_station_request("GET", API_VERSION, "enabled", None, model=List[EnabledStation], collection=True)

    def get_disabled_stations(self) -> Awaitable[RequestResults[List[DisabledStation]]]:
        return self._make_station_request("GET", API_VERSION, "disabled", None, model=List[DisabledStation], collection=True)

    def update_station_geolocation(self, station_id: int, latitude: float, longitude: float) -> Awaitable[RequestResults]:
        if not _is_number(latitude) or not -90 <= latitude <= 90:
            raise SVaaSValidationError("Latitude should be a number between -90 and 90")
        if not _is_number(longitude) or not -180 <= longitude <= 180:
            raise SVaaSValidationError("Longitude should be a number between -180 and 180")
        return self._make_station_request("POST", API_VERSION, "location", station_id, {
            "latitude": latitude,
            "longitude": longitude,
        })
    # endregion

    # region Vehicle commands
    def unlock_vehicle(self, vehicle_id: int, unlock_id: int,
                       ignore_station_status: Optional[bool] = None) -> Awaitable[RequestResults]:
        """Unlock a vehicle, and the spot it is docked on if any."""
        _check_int(unlock_id, 1, "Unlock ID should be an integer greater or equal to 1")
        _check_optional_bool(ignore_station_status, "ignore_station_status")
        return self._make_vehicle_request("POST", API_VERSION, "unlock", vehicle_id, {
            "unlock": unlock_id,
            "ignore_station_status": ignore_station_status,
        })

    def lock_vehicle(self, vehicle_id: int, lock_id: int) -> Awaitable[RequestResults]:
        """Lock a free-floating vehicle.

        Lock id 0 is also used by automatic locks when a vehicle enters a
        station, so prefer ids >= 1 to tell your requests apart.
        """
        _check_int(lock_id, 0, "Lock ID should be an integer greater or equal to 0")
        return self._make_vehicle_request("POST", API_VERSION, "lock", vehicle_id, {"lock": lock_id})

    def emit_vehicle_sound(self, vehicle_id: int, sound_type: Union[VehicleSoundType, str]) -> Awaitable[RequestResults]:
        sound_type = _check_enum(
            VehicleSoundType, sound_type,
            "Sound type should be a string equal to 'geo-fence', 'toot' or 'low_battery'",
        )
        return self._make_vehicle_request("POST", API_VERSION, "sound", vehicle_id, {"sound_type": sound_type.value})

    def open_vehicle_battery_cover(self, vehicle_id: int) -> Awaitable[RequestResults]:
        warnings.warn(
            "open_vehicle_battery_cover is deprecated, use unlock_vehicle_battery",
            DeprecationWarning,
            stacklevel=2,
        )
        return self._make_vehicle_request("POST", API_VERSION, "battery-cover", vehicle_id)

    def unlock_vehicle_battery(self, vehicle_id: int) -> Awaitable[RequestResults]:
        return self._make_vehicle_request("POST", API_VERSION, "battery-unlock", vehicle_id)

    def enable_vehicle(self, vehicle_id: int) -> Awaitable[RequestResults]:
        return self._make_vehicle_request("POST", API_VERSION, "enable", vehicle_id, {})

    def shutdown_vehicle(self, vehicle_id: int) -> Awaitable[RequestResults]:
        """Shut a vehicle down (e.g. for transport). Restarting needs a physical action."""
        return self._make_vehicle_request("POST", API_VERSION, "shutdown", vehicle_id)

    def configure_vehicle(self, vehicle_id: int, config: Union[VehicleConfig, Mapping[str, Any]]) -> Awaitable[RequestResults]:
        if not isinstance(config, VehicleConfig):
            try:
                config = VehicleConfig.model_validate(config)
            except ValidationError as e:
                errs = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
                raise SVaaSValidationError(
                    f"Invalid vehicle configuration (speed limits are integers between 6 and 30, "
                    f"cruise control and button switch speed mode are booleans): {errs}"
                ) from e
        return self._make_vehicle_request("POST", API_VERSION, "config", vehicle_id, config.to_wire())

    def change_vehicle_light_state(self, vehicle_id: int, light_state: Union[VehicleLightState, str]) -> Awaitable[RequestResults]:
        light_state = _check_enum(
            VehicleLightState, light_state,
            "Light state should be a string equal to 'off', 'on' or 'flicker'",
        )
        return self._make_vehicle_request("POST", API_VERSION, "light", vehicle_id, {"state": light_state.value})

    def change_vehicle_speed_mode(self, vehicle_id: int, speed_mode: Union[VehicleSpeedMode, int]) -> Awaitable[RequestResults]:
        speed_mode = _check_enum(VehicleSpeedMode, speed_mode, "Speed mode should be a number equal to 1, 2 or 3")
        return self._make_vehicle_request("PUT", API_VERSION, "speed-mode", vehicle_id, {"speed_mode": int(speed_mode)})

    def change_vehicle_label(self, vehicle_id: int, label: str) -> Awaitable[RequestResults]:
        _check_label(label, "label")
        return self._make_vehicle_request("PUT", API_VERSION, "label", vehicle_id, {"label": label})

    def change_vehicle_label_and_group(self, vehicle_id: int, label: str, group: str) -> Awaitable[RequestResults]:
        _check_label(label, "label")
        _check_label(group, "group")
        return self._make_vehicle_request("PUT", API_VERSION, "label", vehicle_id, {"label": label, "group": group})

    def change_vehicle_throttle_mode(self, vehicle_id: int, throttle_enabled: bool) -> Awaitable[RequestResults]:
        if not isinstance(throttle_enabled, bool):
            raise SVaaSValidationError("Throttle enabled should be a boolean")
        return self._make_vehicle_request("POST", API_VERSION, "config/throttle", vehicle_id, {"enabled": throttle_enabled})

    def get_vehicle_information(self, vehicle_id: int) -> Awaitable[RequestResults[VehicleInformation]]:
        return self._make_vehicle_request("GET", API_VERSION, "", vehicle_id, model=VehicleInformation)

    def get_enabled_vehicles(self) -> Awaitable[RequestResults[List[EnabledVehicle]]]:
        return self._make_vehicle_request("GET", API_VERSION, "enabled", None, model=List[EnabledVehicle], collection=True)

    def get_disabled_vehicles(self) -> Awaitable[RequestResults[List[DisabledVehicle]]]:
        return self._make_vehicle_request("GET", API_VERSION, "disabled", None, model=List[DisabledVehicle], collection=True)
    # endregion

    def check_knot_event_signature(self, event: Union[SignatureEvent, Mapping[str, Any]]) -> bool:
        """Check the signature of a request coming from Knot SVaaS; never raises."""
        if self._verifier is None:
            log.warning("check_knot_event_signature called without a knot_public_key; rejecting")
            return False
        return self._verifier.verify(event)

    def _make_station_request(self, method: str, version: str, action: str, station_id: Optional[int],
                              data: Any = None, model: Any = Any, collection: bool = False) -> Awaitable[RequestResults]:
        path = self._resource_path(version, action, station_id, "Station", collection)
        return self._make_request("station", method, f"{self._options.stations_endpoint}{path}", data, model)

    def _make_vehicle_request(self, method: str, version: str, action: str, vehicle_id: Optional[int],
                              data: Any = None, model: Any = Any, collection: bool = False) -> Awaitable[RequestResults]:
        path = self._resource_path(version, action, vehicle_id, "Vehicle", collection)
        return self._make_request("vehicle", method, f"{self._options.vehicles_endpoint}{path}", data, model)

    @staticmethod
    def _resource_path(version: str, action: str, resource_id: Optional[int], label: str, collection: bool) -> str:
        # Collection routes never carry an id; every other route must.
        if collection:
            return f"/{version}/{action}"
        _check_int(resource_id, 1, f"{label} ID should be an integer greater or equal to 1")
        return f"/{version}/{resource_id}/{action}"

    async def _make_request(self, service: str, method: str, url: str, data: Any, model: Any) -> RequestResults:
        signed = build_signed_request(RequestDescriptor(method=method, url=url, body=data), self._signing)
        log.info(f"{signed.method} {url}")
        start = time.time()
        try:
            resp = await self._http.request(signed.method, signed.url, headers=signed.headers, content=signed.content)
        except httpx.HTTPError as e:
            observe_request(service, signed.method, "transport_error")
            raise SVaaSRequestError(f"Request failed: {type(e).__name__}: {e}", url, data) from e
        latency_ms = (time.time() - start) * 1000.0
        if resp.status_code != 200:
            observe_request(service, signed.method, f"http_{resp.status_code}", latency_ms)
            raise SVaaSRequestError(f"Request return HTTP {resp.status_code}: {resp.text[:500]}", url, data)
        try:
            payload = resp.json()
        except ValueError as e:
            observe_request(service, signed.method, "invalid_body", latency_ms)
            raise SVaaSRequestError(f"Request return a non JSON body: {resp.text[:500]}", url, data) from e
        if not isinstance(payload, dict) or "code" not in payload:
            observe_request(service, signed.method, "invalid_envelope", latency_ms)
            raise SVaaSRequestError(f"Request return an error: {json.dumps(payload)}", url, data)
        if payload.get("code") != KnotCode.SUCCESS:
            payload = {k: v for k, v in payload.items() if k != "data"}
        try:
            result = RequestResults[model].model_validate(payload)
        except ValidationError as e:
            observe_request(service, signed.method, "invalid_envelope", latency_ms)
            raise SVaaSRequestError(f"Request return an unexpected payload: {e}", url, data) from e
        observe_request(service, signed.method, "success" if result.success else "failure", latency_ms)
        if not result.success:
            log.info(f"{signed.method} {url} -> code={result.code} message={result.message}")
        return result
