import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from .errors import SVaaSConfigError

load_dotenv()

DEFAULT_STATIONS_ENDPOINT = "https://staas.knotcity.io"
DEFAULT_VEHICLES_ENDPOINT = "https://vaas.knotcity.io"

STATIONS_ENDPOINT = os.getenv("SVAAS_STATIONS_ENDPOINT", DEFAULT_STATIONS_ENDPOINT)
VEHICLES_ENDPOINT = os.getenv("SVAAS_VEHICLES_ENDPOINT", DEFAULT_VEHICLES_ENDPOINT)
KEY_ID = os.getenv("SVAAS_KEY_ID")
PRIVATE_KEY = os.getenv("SVAAS_PRIVATE_KEY")
PRIVATE_KEY_PATH = os.getenv("SVAAS_PRIVATE_KEY_PATH")
KNOT_PUBLIC_KEY = os.getenv("SVAAS_KNOT_PUBLIC_KEY")
KNOT_PUBLIC_KEY_PATH = os.getenv("SVAAS_KNOT_PUBLIC_KEY_PATH")
SIGNING_ALGORITHM = os.getenv("SVAAS_SIGNING_ALGORITHM", "ecdsa")
SIGNING_HASH = os.getenv("SVAAS_SIGNING_HASH", "sha256")
# Validated as a number when ClientOptions is built.
TIMEOUT = os.getenv("SVAAS_TIMEOUT", "30")


class ClientOptions(BaseModel):
    """Options of a KnotSVaaS client; immutable once validated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    stations_endpoint: StrictStr = Field(default=DEFAULT_STATIONS_ENDPOINT, alias="stationsEndpoint")
    vehicles_endpoint: StrictStr = Field(default=DEFAULT_VEHICLES_ENDPOINT, alias="vehiclesEndpoint")
    key_id: StrictStr = Field(alias="keyId")
    private_key: StrictStr = Field(alias="privateKey")
    # Only needed to check inbound event signatures.
    knot_public_key: Optional[StrictStr] = Field(default=None, alias="knotPublicKey")
    signing_algorithm: str = "ecdsa"
    signing_hash: str = "sha256"
    timeout: float = Field(default=TIMEOUT, gt=0, validate_default=True)
    # Extra keyword arguments for httpx.AsyncClient (proxy, verify, limits, transport...).
    http_client_config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("stations_endpoint", "vehicles_endpoint")
    @classmethod
    def _check_endpoint(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("endpoint is too short to be valid")
        return v[:-1] if v.endswith("/") else v

    @classmethod
    def build(cls, **kwargs: Any) -> "ClientOptions":
        try:
            return cls(**kwargs)
        except ValidationError as e:
            errs = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            raise SVaaSConfigError(f"Invalid options: {errs}") from e

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientOptions":
        values: Dict[str, Any] = {
            "stations_endpoint": STATIONS_ENDPOINT,
            "vehicles_endpoint": VEHICLES_ENDPOINT,
            "key_id": KEY_ID,
            "private_key": PRIVATE_KEY or _read(PRIVATE_KEY_PATH),
            "knot_public_key": KNOT_PUBLIC_KEY or _read(KNOT_PUBLIC_KEY_PATH),
            "signing_algorithm": SIGNING_ALGORITHM,
            "signing_hash": SIGNING_HASH,
            "timeout": TIMEOUT,
        }
        values.update(overrides)
        return cls.build(**values)


def _read(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    try:
        with open(os.path.expanduser(path), "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise SVaaSConfigError(f"Cannot read key file {path}: {e}") from e
