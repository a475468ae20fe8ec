from __future__ import annotations

from pathlib import Path
from typing import Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

PemData = Union[str, bytes]


def _as_bytes(pem: PemData) -> bytes:
    if isinstance(pem, str):
        # env vars frequently carry PEM with escaped newlines
        pem = pem.replace("\\n", "\n").strip().encode()
    return pem


def load_private_key(pem: PemData):
    try:
        return serialization.load_pem_private_key(_as_bytes(pem), password=None)
    except Exception as e:
        raise ValueError(f"Invalid private key: {e}") from e


def load_public_key(pem: PemData):
    """Load a PEM public key; a private key PEM yields its public half."""
    data = _as_bytes(pem)
    if b"PRIVATE KEY" in data:
        return load_private_key(data).public_key()
    try:
        return serialization.load_pem_public_key(data)
    except Exception as e:
        raise ValueError(f"Invalid public key: {e}") from e


def read_key_file(path: Union[str, Path]) -> str:
    return Path(path).expanduser().read_text(encoding="utf-8")


def generate_private_key(algorithm: str = "ecdsa"):
    alg = algorithm.lower()
    if alg == "ecdsa":
        return ec.generate_private_key(ec.SECP256R1())
    if alg == "rsa":
        return rsa.generate_private_key(public_exponent=65537, key_size=2048)
    if alg == "ed25519":
        return ed25519.Ed25519PrivateKey.generate()
    raise ValueError(f"Unsupported alg: {algorithm}")


def private_key_to_pem(private_key) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def public_key_to_pem(public_key) -> str:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


__all__ = [
    "load_private_key",
    "load_public_key",
    "read_key_file",
    "generate_private_key",
    "private_key_to_pem",
    "public_key_to_pem",
]
