from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from svaas.events import parse_event
from svaas.httpsig.signer import RequestDescriptor, SigningKeyMaterial, build_signed_request
from svaas.httpsig.verifier import SignatureEvent, SignatureVerifier
from svaas.webhook import metrics_router, require_knot_signature

from conftest import EC_PRIVATE_PEM, EC_PUBLIC_PEM

KEYS = SigningKeyMaterial.from_pem("knot", EC_PRIVATE_PEM)


def make_app():
    app = FastAPI()
    check = require_knot_signature(SignatureVerifier(EC_PUBLIC_PEM))

    @app.post("/knot/events")
    async def on_event(payload: dict, sig: SignatureEvent = Depends(check)):
        event = parse_event(payload)
        return {"event": event.event, "path": sig.path}

    @app.post("/knot/{tenant}/events")
    async def on_tenant_event(tenant: str, payload: dict, sig: SignatureEvent = Depends(check)):
        return {"tenant": tenant, "path": sig.path}

    app.include_router(metrics_router)
    return app


def signed(url, body):
    return build_signed_request(RequestDescriptor("POST", url, body), KEYS)


def test_signed_webhook_accepted():
    client = TestClient(make_app())
    req = signed("http://testserver/knot/events?tenant=7", {"station": 3, "event": "boot"})
    r = client.post("/knot/events?tenant=7", content=req.content, headers=req.headers)
    assert r.status_code == 200
    assert r.json() == {"event": "boot", "path": "/knot/events?tenant=7"}


def test_unsigned_webhook_rejected():
    client = TestClient(make_app())
    r = client.post("/knot/events", json={"station": 3, "event": "boot"})
    assert r.status_code == 401


def test_webhook_signed_for_another_path_rejected():
    client = TestClient(make_app())
    req = signed("http://testserver/knot/other", {"station": 3, "event": "boot"})
    r = client.post("/knot/events", content=req.content, headers=req.headers)
    assert r.status_code == 401


def test_metrics_endpoint_exposes_verifications():
    client = TestClient(make_app())
    client.post("/knot/events", json={"station": 3, "event": "boot"})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "svaas_signature_verifications_total" in r.text


def test_percent_encoded_path_verifies():
    client = TestClient(make_app())
    req = signed("http://testserver/knot/acme%20corp/events?x=a%2Fb", {"station": 3, "event": "boot"})
    r = client.post("/knot/acme%20corp/events?x=a%2Fb", content=req.content, headers=req.headers)
    assert r.status_code == 200
    assert r.json() == {"tenant": "acme corp", "path": "/knot/acme%20corp/events?x=a%2Fb"}
