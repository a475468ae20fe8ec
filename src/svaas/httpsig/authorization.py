"""Authorization header (de)serialization.

Wire format::

    Signature keyId="<id>",algorithm="ecdsa",hash="sha256",headers="x-knot-date (request-target) content-type content-length",signature="<base64>"

The parser is strict: anything it does not fully understand is rejected.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from ..crypto.alg_registry import INTRINSIC_HASH

SCHEME = "Signature"
KNOWN_FIELDS = ("keyId", "algorithm", "hash", "headers", "signature")
REQUIRED_FIELDS = ("keyId", "headers", "signature")

PAIR_RE = re.compile(r'\s*([A-Za-z]+)="([^"]*)"\s*')


class AuthorizationHeaderError(ValueError):
    """The Authorization header value is not a well-formed signature header."""


@dataclass(frozen=True)
class AuthorizationHeaderComponents:
    key_id: str
    signature: str
    headers: List[str] = field(default_factory=list)
    algorithm: Optional[str] = None
    hash: Optional[str] = None

    def with_defaults(self, algorithm: str, hash_name: str) -> "AuthorizationHeaderComponents":
        """Fill absent algorithm/hash (older signers omit them)."""
        return replace(self, algorithm=self.algorithm or algorithm, hash=self.hash or hash_name)


def format_authorization_header(components: AuthorizationHeaderComponents) -> str:
    parts = [f'keyId="{components.key_id}"']
    if components.algorithm:
        parts.append(f'algorithm="{components.algorithm}"')
        if components.hash and components.algorithm.lower() not in INTRINSIC_HASH:
            parts.append(f'hash="{components.hash}"')
    elif components.hash:
        parts.append(f'hash="{components.hash}"')
    parts.append(f'headers="{" ".join(h.lower() for h in components.headers)}"')
    parts.append(f'signature="{components.signature}"')
    return f"{SCHEME} " + ",".join(parts)


def _split_pairs(params: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    pos = 0
    while True:
        m = PAIR_RE.match(params, pos)
        if not m:
            raise AuthorizationHeaderError(f"malformed parameter near offset {pos}")
        key, val = m.group(1), m.group(2)
        if key not in KNOWN_FIELDS:
            raise AuthorizationHeaderError(f"unknown parameter {key!r}")
        if key in out:
            raise AuthorizationHeaderError(f"duplicate parameter {key!r}")
        out[key] = val
        pos = m.end()
        if pos == len(params):
            return out
        if params[pos] != ",":
            raise AuthorizationHeaderError(f"expected ',' at offset {pos}")
        pos += 1


def parse_authorization_header(value: str) -> AuthorizationHeaderComponents:
    if not isinstance(value, str):
        raise AuthorizationHeaderError("header value must be a string")
    scheme, _, params = value.strip().partition(" ")
    if scheme.lower() != SCHEME.lower() or not params.strip():
        raise AuthorizationHeaderError("missing Signature scheme")
    pairs = _split_pairs(params)
    missing = [f for f in REQUIRED_FIELDS if not pairs.get(f)]
    if missing:
        raise AuthorizationHeaderError(f"missing parameters: {', '.join(missing)}")
    headers = pairs["headers"].lower().split()
    if not headers:
        raise AuthorizationHeaderError("empty headers list")
    return AuthorizationHeaderComponents(
        key_id=pairs["keyId"],
        signature=pairs["signature"],
        headers=headers,
        algorithm=pairs.get("algorithm") or None,
        hash=pairs.get("hash") or None,
    )


__all__ = [
    "AuthorizationHeaderComponents",
    "AuthorizationHeaderError",
    "format_authorization_header",
    "parse_authorization_header",
]
