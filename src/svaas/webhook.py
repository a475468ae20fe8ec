"""FastAPI glue for receiving Knot webhook calls.

::

    verifier = SignatureVerifier(knot_public_key_pem)

    @app.post("/knot/events", dependencies=[Depends(require_knot_signature(verifier))])
    async def on_event(payload: dict):
        event = parse_event(payload)
"""
from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from .httpsig.verifier import SignatureEvent, SignatureVerifier
from .obs.prom import prometheus_latest
from .utils.logging import get_logger

log = get_logger(__name__)


def signature_event_from_request(request: Request) -> SignatureEvent:
    """Rebuild the request target as sent on the wire (percent-encoding kept)."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1").split("?", 1)[0]
    else:
        path = request.url.path
    query = request.scope.get("query_string", b"")
    if query:
        path = f"{path}?{query.decode('latin-1')}"
    return SignatureEvent(
        headers={k.lower(): v for k, v in request.headers.items()},
        http_method=request.method,
        path=path,
    )


def require_knot_signature(verifier: SignatureVerifier) -> Callable[[Request], Awaitable[SignatureEvent]]:
    """Build a dependency rejecting (401) any request not signed by Knot."""

    async def _dependency(request: Request) -> SignatureEvent:
        event = signature_event_from_request(request)
        if not verifier.verify(event):
            log.warning(f"rejected unsigned or badly signed webhook {event.http_method} {event.path}")
            raise HTTPException(status_code=401, detail="invalid knot signature")
        return event

    return _dependency


metrics_router = APIRouter()


@metrics_router.get("/metrics")
async def metrics_prom():
    payload, content_type = prometheus_latest()
    return Response(content=payload, media_type=content_type)


__all__ = [
    "metrics_router",
    "require_knot_signature",
    "signature_event_from_request",
]
