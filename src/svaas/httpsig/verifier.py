"""Inbound signature verification.

Every failure (missing header, malformed header, unsigned date or target,
bad base64, wrong key, bad signature) collapses to ``False``. Webhook
handlers branch on the boolean; nothing here raises to the caller.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from ..crypto import alg_registry
from ..crypto.keyloader import load_public_key
from ..obs.prom import observe_verification
from ..utils.logging import get_logger
from .authorization import AuthorizationHeaderComponents, parse_authorization_header
from .base_string import REQUIRED_SIGNED_HEADERS, build_signing_string

log = get_logger(__name__)


class SignatureEvent(BaseModel):
    """Raw pieces of an inbound request, as extracted by the webhook handler."""

    model_config = ConfigDict(populate_by_name=True)

    headers: Dict[str, Any]
    http_method: str = Field(alias="httpMethod")
    path: str


@dataclass(frozen=True)
class VerificationKeyMaterial:
    public_key: Any

    @classmethod
    def from_pem(cls, pem) -> "VerificationKeyMaterial":
        return cls(public_key=load_public_key(pem))


def verify_authorization(
    components: AuthorizationHeaderComponents,
    *,
    headers: Mapping[str, Any],
    method: str,
    path: str,
    public_key: Any,
) -> bool:
    signing_string = build_signing_string(method, path, headers, components.headers)
    signature = base64.b64decode(components.signature, validate=True)
    return alg_registry.verify_bytes(
        components.algorithm or alg_registry.DEFAULT_ALGORITHM,
        components.hash,
        public_key,
        signature,
        signing_string.encode("utf-8"),
    )


def _find_authorization(headers: Mapping[str, Any]) -> Any:
    for k, v in headers.items():
        if isinstance(k, str) and k.lower() == "authorization":
            return v
    return None


def _check(event: SignatureEvent, public_key: Any) -> Tuple[bool, str]:
    auth = _find_authorization(event.headers)
    if not isinstance(auth, str):
        return False, "missing_authorization"
    try:
        components = parse_authorization_header(auth)
    except ValueError:
        return False, "malformed_authorization"
    if any(h not in components.headers for h in REQUIRED_SIGNED_HEADERS):
        return False, "unsigned_date_or_target"
    # Older signers omit algorithm/hash.
    components = components.with_defaults(alg_registry.DEFAULT_ALGORITHM, alg_registry.DEFAULT_HASH)
    ok = verify_authorization(
        components,
        headers=event.headers,
        method=event.http_method,
        path=event.path,
        public_key=public_key,
    )
    return ok, "ok" if ok else "bad_signature"


def check_event_signature(event: Union[SignatureEvent, Mapping[str, Any]], public_key: Any) -> bool:
    try:
        if not isinstance(event, SignatureEvent):
            event = SignatureEvent.model_validate(event)
        verified, reason = _check(event, public_key)
    except Exception as e:
        log.debug(f"signature check error: {type(e).__name__}: {e}")
        verified, reason = False, "error"
    observe_verification(verified, reason)
    log.debug(f"signature check verified={verified} reason={reason}")
    return verified


class SignatureVerifier:
    """Holds the counterparty public key; immutable after construction."""

    def __init__(self, public_key: Any):
        if isinstance(public_key, (str, bytes)):
            public_key = load_public_key(public_key)
        self._keys = VerificationKeyMaterial(public_key=public_key)

    @property
    def public_key(self) -> Any:
        return self._keys.public_key

    def verify(self, event: Union[SignatureEvent, Mapping[str, Any]]) -> bool:
        return check_event_signature(event, self._keys.public_key)

    def verify_request(self, headers: Mapping[str, Any], http_method: str, path: str) -> bool:
        return self.verify({"headers": dict(headers), "httpMethod": http_method, "path": path})


__all__ = [
    "SignatureEvent",
    "SignatureVerifier",
    "VerificationKeyMaterial",
    "check_event_signature",
    "verify_authorization",
]
