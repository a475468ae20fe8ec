from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .crypto.alg_registry import ALGORITHMS, DEFAULT_ALGORITHM, DEFAULT_HASH, HASHES
from .crypto.keyloader import generate_private_key, private_key_to_pem, public_key_to_pem, read_key_file
from .errors import SVaaSError
from .httpsig.signer import RequestDescriptor, SigningKeyMaterial, build_signed_request
from .httpsig.verifier import SignatureVerifier


def cmd_keygen(args: argparse.Namespace) -> int:
    key = generate_private_key(args.alg)
    priv_pem = private_key_to_pem(key)
    pub_pem = public_key_to_pem(key.public_key())
    if args.out:
        Path(f"{args.out}.pem").write_text(priv_pem, encoding="utf-8")
        Path(f"{args.out}.pub.pem").write_text(pub_pem, encoding="utf-8")
        print(f"wrote {args.out}.pem and {args.out}.pub.pem ({args.alg})")
    else:
        print(priv_pem, end="")
        print(pub_pem, end="")
    return 0


def cmd_sign(args: argparse.Namespace) -> int:
    keys = SigningKeyMaterial.from_pem(args.key_id, read_key_file(args.private_key), algorithm=args.alg, hash=args.hash)
    body = json.loads(args.body) if args.body is not None else None
    signed = build_signed_request(RequestDescriptor(method=args.method, url=args.url, body=body), keys, now_ms=args.date)
    print(json.dumps({"method": signed.method, "path": signed.path, "headers": signed.headers}, indent=2))
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    verifier = SignatureVerifier(read_key_file(args.public_key))
    raw = sys.stdin.read() if args.input == "-" else Path(args.input).read_text(encoding="utf-8")
    ok = verifier.verify(json.loads(raw))
    print(json.dumps({"verified": ok}))
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser("svaas")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_keygen = sub.add_parser("keygen", help="generate a PEM key pair")
    p_keygen.add_argument("--alg", choices=ALGORITHMS, default=DEFAULT_ALGORITHM)
    p_keygen.add_argument("--out", help="path prefix; writes <out>.pem and <out>.pub.pem (default: stdout)")
    p_keygen.set_defaults(func=cmd_keygen)

    p_sign = sub.add_parser("sign", help="print the signed headers of a request")
    p_sign.add_argument("--key-id", dest="key_id", required=True)
    p_sign.add_argument("--private-key", dest="private_key", required=True, help="PEM file")
    p_sign.add_argument("--method", default="POST")
    p_sign.add_argument("--url", required=True)
    p_sign.add_argument("--body", help="JSON body")
    p_sign.add_argument("--alg", choices=ALGORITHMS, default=DEFAULT_ALGORITHM)
    p_sign.add_argument("--hash", choices=HASHES, default=DEFAULT_HASH)
    p_sign.add_argument("--date", type=int, help="X-Knot-Date in ms (default: now)")
    p_sign.set_defaults(func=cmd_sign)

    p_verify = sub.add_parser("verify", help="check a {headers, httpMethod, path} document")
    p_verify.add_argument("--public-key", dest="public_key", required=True, help="PEM file")
    p_verify.add_argument("--input", default="-", help="JSON file (default: stdin)")
    p_verify.set_defaults(func=cmd_verify)

    args = p.parse_args(argv)
    try:
        return args.func(args)
    except (SVaaSError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
