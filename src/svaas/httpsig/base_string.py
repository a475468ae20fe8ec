"""Canonical signing-string construction.

Shared by the request signer and the signature verifier so both feed the
exact same bytes to the signature primitive. Each line is ``name: value``
with the header name lowercased; the ``(request-target)`` pseudo-header is
synthesized as ``<lowercased method> <path>``. Lines are joined with a single
``\\n`` and there is no trailing newline.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping

REQUEST_TARGET = "(request-target)"
DATE_HEADER = "X-Knot-Date"
API_KEY_HEADER = "X-Api-Key"

# Outbound wire contract: fixed order, shared with the verifier on the other side.
SIGNED_HEADERS = (DATE_HEADER, REQUEST_TARGET, "Content-Type", "Content-Length")

# A signature that does not cover both of these is never trusted.
REQUIRED_SIGNED_HEADERS = (DATE_HEADER.lower(), REQUEST_TARGET)


def request_target(method: str, path: str) -> str:
    return f"{method.lower()} {path or '/'}"


def header_value(headers: Mapping[str, Any], name: str) -> str:
    """Case-insensitive header lookup; raises KeyError when absent."""
    lname = name.lower()
    for k, v in headers.items():
        if isinstance(k, bytes):
            k = k.decode("latin-1")
        if k.lower() != lname:
            continue
        if isinstance(v, bytes):
            v = v.decode("latin-1")
        if isinstance(v, (list, tuple)):
            v = ", ".join(str(item).strip() for item in v)
        return str(v).strip()
    raise KeyError(name)


def build_signing_string(method: str, path: str, headers: Mapping[str, Any], header_names: Iterable[str]) -> str:
    lines: List[str] = []
    for name in header_names:
        lname = name.lower()
        if lname == REQUEST_TARGET:
            val = request_target(method, path)
        else:
            val = header_value(headers, lname)
        val = val.replace("\r", "").replace("\n", "")
        lines.append(f"{lname}: {val}")
    return "\n".join(lines)


__all__ = [
    "API_KEY_HEADER",
    "DATE_HEADER",
    "REQUEST_TARGET",
    "REQUIRED_SIGNED_HEADERS",
    "SIGNED_HEADERS",
    "build_signing_string",
    "header_value",
    "request_target",
]
