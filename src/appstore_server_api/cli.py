"""CLI utilities for developer workflows."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .bearer_token import MAX_TOKEN_LIFETIME, TokenGenerator
from .exceptions import AppStoreServerAPIError
from .signed_data import decode_signed_envelope


def _token(args: argparse.Namespace) -> int:
    generator = TokenGenerator(
        key_id=args.key_id,
        issuer_id=args.issuer_id,
        bundle_id=args.bundle_id,
        private_key=args.key_file.read_text(),
    )
    print(generator.generate(expires_in=args.expires_in))
    return 0


def _decode(args: argparse.Namespace) -> int:
    payload, header = decode_signed_envelope(args.envelope.strip())
    output = {"header": header, "payload": payload} if args.header else payload
    print(json.dumps(output, indent=2, sort_keys=True))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="appstore-server-api")
    subparsers = parser.add_subparsers(dest="command", required=True)

    token = subparsers.add_parser("token", help="print a signed bearer token")
    token.add_argument("--key-file", required=True, type=Path, help="path to the .p8 private key")
    token.add_argument("--key-id", required=True)
    token.add_argument("--issuer-id", required=True)
    token.add_argument("--bundle-id", required=True)
    token.add_argument("--expires-in", type=int, default=MAX_TOKEN_LIFETIME)
    token.set_defaults(handler=_token)

    decode = subparsers.add_parser("decode", help="decode a signed envelope without verifying it")
    decode.add_argument("envelope")
    decode.add_argument("--header", action="store_true", help="include the decoded header")
    decode.set_defaults(handler=_decode)
    return parser


def _main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        return args.handler(args)
    except (AppStoreServerAPIError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    raise SystemExit(_main())
