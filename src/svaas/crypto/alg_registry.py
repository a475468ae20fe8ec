"""Algorithm registry for HTTP request signatures.

Supported algorithms:
  - ecdsa    (default; any NIST curve key, DER encoded signature)
  - rsa      (PKCS#1 v1.5)
  - ed25519  (digest is intrinsic, the ``hash`` parameter is ignored)

Supported hashes: sha256 (default), sha384, sha512.

The registry exposes two primary helpers:
  sign_bytes(algorithm, hash, private_key, message) -> signature bytes
  verify_bytes(algorithm, hash, public_key, signature, message) -> bool
"""
from __future__ import annotations

from typing import Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

DEFAULT_ALGORITHM = "ecdsa"
DEFAULT_HASH = "sha256"

ALGORITHMS = ("ecdsa", "rsa", "ed25519")
# Algorithms whose signature scheme fixes the digest.
INTRINSIC_HASH = ("ed25519",)

_HASHES: Dict[str, type] = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}
HASHES = tuple(_HASHES)


class UnsupportedAlgorithm(ValueError):
    """Raised for an unknown algorithm/hash name or a key of the wrong type."""


def normalize_algorithm(algorithm: str | None) -> str:
    alg = (algorithm or DEFAULT_ALGORITHM).lower()
    if alg not in ALGORITHMS:
        raise UnsupportedAlgorithm(f"Unsupported algorithm: {algorithm}")
    return alg


def normalize_hash(hash_name: str | None) -> str:
    h = (hash_name or DEFAULT_HASH).lower()
    if h not in _HASHES:
        raise UnsupportedAlgorithm(f"Unsupported hash: {hash_name}")
    return h


def _digest(hash_name: str | None) -> hashes.HashAlgorithm:
    return _HASHES[normalize_hash(hash_name)]()


def check_private_key(algorithm: str, private_key) -> None:
    alg = normalize_algorithm(algorithm)
    expected = {
        "ecdsa": ec.EllipticCurvePrivateKey,
        "rsa": rsa.RSAPrivateKey,
        "ed25519": ed25519.Ed25519PrivateKey,
    }[alg]
    if not isinstance(private_key, expected):
        raise UnsupportedAlgorithm(f"{alg} requires a {expected.__name__}, got {type(private_key).__name__}")


def check_public_key(algorithm: str, public_key) -> None:
    alg = normalize_algorithm(algorithm)
    expected = {
        "ecdsa": ec.EllipticCurvePublicKey,
        "rsa": rsa.RSAPublicKey,
        "ed25519": ed25519.Ed25519PublicKey,
    }[alg]
    if not isinstance(public_key, expected):
        raise UnsupportedAlgorithm(f"{alg} requires a {expected.__name__}, got {type(public_key).__name__}")


def sign_bytes(algorithm: str, hash_name: str | None, private_key, message: bytes) -> bytes:
    alg = normalize_algorithm(algorithm)
    check_private_key(alg, private_key)
    if alg == "ecdsa":
        return private_key.sign(message, ec.ECDSA(_digest(hash_name)))
    if alg == "rsa":
        return private_key.sign(message, padding.PKCS1v15(), _digest(hash_name))
    return private_key.sign(message)


def verify_bytes(algorithm: str, hash_name: str | None, public_key, signature: bytes, message: bytes) -> bool:
    alg = normalize_algorithm(algorithm)
    check_public_key(alg, public_key)
    try:
        if alg == "ecdsa":
            public_key.verify(signature, message, ec.ECDSA(_digest(hash_name)))
        elif alg == "rsa":
            public_key.verify(signature, message, padding.PKCS1v15(), _digest(hash_name))
        else:
            public_key.verify(signature, message)
    except InvalidSignature:
        return False
    return True


__all__ = [
    "ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "DEFAULT_HASH",
    "HASHES",
    "INTRINSIC_HASH",
    "UnsupportedAlgorithm",
    "check_private_key",
    "check_public_key",
    "normalize_algorithm",
    "normalize_hash",
    "sign_bytes",
    "verify_bytes",
]
