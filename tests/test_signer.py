import base64
import json

import pytest

from svaas.crypto.keyloader import load_public_key, public_key_to_pem
from svaas.crypto import alg_registry
from svaas.errors import SigningError
from svaas.httpsig.authorization import parse_authorization_header
from svaas.httpsig.base_string import build_signing_string
from svaas.httpsig.signer import (
    RequestDescriptor,
    SigningKeyMaterial,
    build_signed_request,
    generate_authorization,
    request_path,
    serialize_body,
)

from conftest import (
    EC_PRIVATE_PEM,
    ED25519_PRIVATE_PEM,
    ED25519_PUBLIC_PEM,
    PING_ED25519_SIGNATURE,
    PING_HEADERS,
)


@pytest.fixture
def ec_keys():
    return SigningKeyMaterial.from_pem("operator-key", EC_PRIVATE_PEM)


def test_headers_are_stamped(ec_keys):
    signed = build_signed_request(
        RequestDescriptor("post", "https://staas.test/v1/12/unlock", {"spot": 3, "unlock": 1001}),
        ec_keys,
        now_ms=1700000000000,
    )
    assert signed.method == "POST"
    assert signed.path == "/v1/12/unlock"
    assert signed.headers["X-Knot-Date"] == "1700000000000"
    assert signed.headers["X-Api-Key"] == "operator-key"
    assert signed.headers["Content-Type"] == "application/json"
    assert signed.content == b'{"spot":3,"unlock":1001}'
    assert signed.headers["Content-Length"] == str(len(signed.content))

    comps = parse_authorization_header(signed.headers["Authorization"])
    assert comps.key_id == "operator-key"
    assert (comps.algorithm, comps.hash) == ("ecdsa", "sha256")
    assert comps.headers == ["x-knot-date", "(request-target)", "content-type", "content-length"]
    assert "x-api-key" not in comps.headers


def test_date_defaults_to_now(ec_keys, monkeypatch):
    monkeypatch.setattr("svaas.httpsig.signer.time.time", lambda: 1234.5)
    signed = build_signed_request(RequestDescriptor("GET", "https://staas.test/v1/enabled"), ec_keys)
    assert signed.headers["X-Knot-Date"] == "1234500"
    assert signed.headers["Content-Length"] == "0"
    assert signed.content == b""


def test_content_length_counts_utf8_bytes(ec_keys):
    body = {"label": "Gare de l'Est – quai ☂"}
    signed = build_signed_request(RequestDescriptor("PUT", "https://staas.test/v1/3/label", body), ec_keys, now_ms=1)
    assert int(signed.headers["Content-Length"]) == len(json.dumps(body, ensure_ascii=False, separators=(",", ":")).encode("utf-8"))
    assert int(signed.headers["Content-Length"]) > len(signed.content.decode("utf-8"))


def test_none_values_are_dropped_from_body():
    assert serialize_body({"unlock": 1, "ignore_station_status": None}) == b'{"unlock":1}'
    assert serialize_body({}) == b"{}"
    assert serialize_body(None) == b""


def test_request_path_keeps_query():
    assert request_path("https://vaas.test/v1/7/unlock?dry=1") == "/v1/7/unlock?dry=1"
    assert request_path("https://vaas.test") == "/"


def test_ed25519_ping_signature_is_deterministic():
    keys = SigningKeyMaterial.from_pem("knot", ED25519_PRIVATE_PEM, algorithm="ed25519")
    signed = build_signed_request(RequestDescriptor("GET", "https://staas.test/v1/42/ping"), keys, now_ms=1700000000000)
    comps = parse_authorization_header(signed.headers["Authorization"])
    assert comps.signature == PING_ED25519_SIGNATURE
    assert comps.hash is None


@pytest.mark.parametrize("alg,hash_name", [("ecdsa", "sha384"), ("rsa", "sha512"), ("rsa", "sha256")])
def test_signature_verifies_with_public_key(alg, hash_name):
    from svaas.crypto.keyloader import generate_private_key, private_key_to_pem

    key = generate_private_key(alg)
    keys = SigningKeyMaterial.from_pem("k", private_key_to_pem(key), algorithm=alg, hash=hash_name)
    signed = build_signed_request(RequestDescriptor("POST", "https://vaas.test/v1/1/lock", {"lock": 0}), keys, now_ms=5)
    comps = parse_authorization_header(signed.headers["Authorization"])
    message = build_signing_string("POST", signed.path, signed.headers, comps.headers).encode()
    assert alg_registry.verify_bytes(alg, hash_name, key.public_key(), base64.b64decode(comps.signature), message)


def test_generate_authorization_missing_header_is_signing_error(ec_keys):
    with pytest.raises(SigningError, match="content-length"):
        generate_authorization(
            "GET", "/", {"x-knot-date": "1", "content-type": "application/json"},
            key_id="k", private_key=ec_keys.private_key,
        )


@pytest.mark.parametrize(
    "pem,alg,hash_name",
    [
        ("not a key", "ecdsa", "sha256"),
        (EC_PRIVATE_PEM, "ed25519", "sha256"),
        (EC_PRIVATE_PEM, "dsa", "sha256"),
        (EC_PRIVATE_PEM, "ecdsa", "md5"),
        (ED25519_PUBLIC_PEM, "ed25519", "sha256"),
    ],
)
def test_bad_key_material_rejected(pem, alg, hash_name):
    with pytest.raises(SigningError, match="Generating the request signature failed"):
        SigningKeyMaterial.from_pem("k", pem, algorithm=alg, hash=hash_name)


def test_escaped_newlines_in_pem_accepted():
    keys = SigningKeyMaterial.from_pem("k", ED25519_PRIVATE_PEM.replace("\n", "\\n"), algorithm="ed25519")
    assert public_key_to_pem(keys.private_key.public_key()) == public_key_to_pem(load_public_key(ED25519_PUBLIC_PEM))
