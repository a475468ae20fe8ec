"""Request signer.

``build_signed_request`` is a pure function: it takes a request descriptor and
the signing key material and returns a new descriptor carrying every header
the signature covers, plus the Authorization header itself. Nothing may alter
those headers after signing, so the client sends ``SignedRequest`` verbatim.
"""
from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from ..crypto import alg_registry
from ..crypto.keyloader import load_private_key
from ..errors import SigningError
from .authorization import AuthorizationHeaderComponents, format_authorization_header
from .base_string import API_KEY_HEADER, DATE_HEADER, SIGNED_HEADERS, build_signing_string


@dataclass(frozen=True)
class SigningKeyMaterial:
    key_id: str
    private_key: Any
    algorithm: str = alg_registry.DEFAULT_ALGORITHM
    hash: str = alg_registry.DEFAULT_HASH

    @classmethod
    def from_pem(cls, key_id: str, private_key_pem, algorithm: str = alg_registry.DEFAULT_ALGORITHM,
                 hash: str = alg_registry.DEFAULT_HASH) -> "SigningKeyMaterial":
        try:
            alg = alg_registry.normalize_algorithm(algorithm)
            h = alg_registry.normalize_hash(hash)
            key = load_private_key(private_key_pem)
            alg_registry.check_private_key(alg, key)
        except ValueError as e:
            raise SigningError(e) from e
        return cls(key_id=key_id, private_key=key, algorithm=alg, hash=h)


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    url: str
    body: Any = None


@dataclass(frozen=True)
class SignedRequest:
    method: str
    url: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""


def generate_authorization(
    method: str,
    path: str,
    headers: Mapping[str, Any],
    *,
    key_id: str,
    private_key: Any,
    algorithm: str = alg_registry.DEFAULT_ALGORITHM,
    hash: str = alg_registry.DEFAULT_HASH,
    header_names: Iterable[str] = SIGNED_HEADERS,
) -> str:
    names = [n.lower() for n in header_names]
    try:
        signing_string = build_signing_string(method, path, headers, names)
    except KeyError as e:
        raise SigningError(f"header {e.args[0]!r} is declared as signed but missing from the request") from e
    try:
        sig = alg_registry.sign_bytes(algorithm, hash, private_key, signing_string.encode("utf-8"))
    except Exception as e:
        raise SigningError(e) from e
    components = AuthorizationHeaderComponents(
        key_id=key_id,
        algorithm=algorithm,
        hash=hash,
        headers=names,
        signature=base64.b64encode(sig).decode(),
    )
    return format_authorization_header(components)


def serialize_body(data: Any) -> bytes:
    """Compact UTF-8 JSON; top-level None values are dropped like undefined in JSON.stringify."""
    if data is None:
        return b""
    if isinstance(data, Mapping):
        data = {k: v for k, v in data.items() if v is not None}
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def request_path(url: str) -> str:
    """Path plus query string of an absolute URL, as the server sees it."""
    raw = httpx.URL(url).raw_path.decode("ascii")
    return raw or "/"


def build_signed_request(descriptor: RequestDescriptor, key_material: SigningKeyMaterial,
                         *, now_ms: Optional[int] = None) -> SignedRequest:
    content = serialize_body(descriptor.body)
    method = (descriptor.method or "POST").upper()
    try:
        path = request_path(descriptor.url)
    except Exception as e:
        raise SigningError(f"invalid request URL {descriptor.url!r}: {e}") from e
    headers: Dict[str, str] = {
        DATE_HEADER: str(now_ms if now_ms is not None else int(time.time() * 1000)),
        API_KEY_HEADER: key_material.key_id,
        "Content-Type": "application/json",
        "Content-Length": str(len(content)),
    }
    headers["Authorization"] = generate_authorization(
        method,
        path,
        headers,
        key_id=key_material.key_id,
        private_key=key_material.private_key,
        algorithm=key_material.algorithm,
        hash=key_material.hash,
        header_names=SIGNED_HEADERS,
    )
    return SignedRequest(method=method, url=descriptor.url, path=path, headers=headers, content=content)


__all__ = [
    "RequestDescriptor",
    "SignedRequest",
    "SigningKeyMaterial",
    "build_signed_request",
    "generate_authorization",
    "request_path",
    "serialize_body",
]
