"""Command line entry point: hash, sign and verify JSON documents."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any

from docsig.core.config import get_settings
from docsig.core.crypto.canonicalization import CANONICALIZATION_MODES
from docsig.core.crypto.hashing import hash_document
from docsig.core.crypto.signer import sign
from docsig.core.crypto.trusted_keys import TrustedKeyCache, get_trusted_key_cache
from docsig.core.crypto.verifier import verify
from docsig.core.errors import DocsigError
from docsig.core.logging import configure_logging


def _load_document(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _emit(data: Any, output: str | None = None) -> None:
    text = json.dumps(data, indent=2)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def _cmd_hash(args: argparse.Namespace) -> int:
    document = _load_document(args.file)
    _emit(
        hash_document(
            document,
            keep_reserved_keys=args.keep_reserved_keys,
            canonicalization=args.canonicalization,
        )
    )
    return 0


def _cmd_sign(args: argparse.Namespace) -> int:
    document = _load_document(args.file)
    header: dict[str, Any] = {}
    if args.jku:
        header["jku"] = args.jku
    if args.kid:
        header["kid"] = args.kid
    signer = None
    if args.signer_name:
        signer = {"name": args.signer_name}
        if args.signer_url:
            signer["url"] = args.signer_url
    signed = sign(
        document,
        Path(args.key).read_text(encoding="utf-8"),
        signer=signer,
        signature_type=args.type,
        header=header,
        canonicalization=args.canonicalization,
    )
    _emit(signed, args.output)
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    document = _load_document(args.file)
    if args.trusted_list:
        cache = TrustedKeyCache(
            args.trusted_list,
            max_age=timedelta(seconds=get_settings().trusted_list_max_age_seconds),
        )
    else:
        cache = get_trusted_key_cache()
    result = asyncio.run(
        verify(document, allow_untrusted=args.allow_untrusted, trusted_keys=cache)
    )
    output = result.to_dict()
    if not args.show_original:
        output.pop("original")
    _emit(output)
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsig",
        description="Hash, sign and verify signature stacks on JSON documents.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    hash_parser = sub.add_parser("hash", help="Print the hashinfo of a document.")
    hash_parser.add_argument("file", help="JSON document path, or - for stdin")
    hash_parser.add_argument("--keep-reserved-keys", action="store_true")
    hash_parser.add_argument("--canonicalization", choices=sorted(CANONICALIZATION_MODES))
    hash_parser.set_defaults(func=_cmd_hash)

    sign_parser = sub.add_parser("sign", help="Append a signature to a document.")
    sign_parser.add_argument("file", help="JSON document path, or - for stdin")
    sign_parser.add_argument("--key", required=True, help="PEM-encoded private key file")
    sign_parser.add_argument("--jku", help="URL of a JWK Set holding the public key")
    sign_parser.add_argument("--kid", help="Key id of the public key in the jku set")
    sign_parser.add_argument("--signer-name")
    sign_parser.add_argument("--signer-url")
    sign_parser.add_argument("--type", help="Signature type, e.g. transcription")
    sign_parser.add_argument("--canonicalization", choices=sorted(CANONICALIZATION_MODES))
    sign_parser.add_argument("-o", "--output", help="Write the signed document here")
    sign_parser.set_defaults(func=_cmd_sign)

    verify_parser = sub.add_parser("verify", help="Verify the latest signature of a document.")
    verify_parser.add_argument("file", help="JSON document path, or - for stdin")
    verify_parser.add_argument("--allow-untrusted", action="store_true")
    verify_parser.add_argument(
        "--trusted-list",
        action="append",
        metavar="URL",
        help="Trusted registry URL (repeatable); defaults to DOCSIG_TRUSTED_LIST_URLS",
    )
    verify_parser.add_argument(
        "--show-original", action="store_true", help="Include the unsigned original in output"
    )
    verify_parser.set_defaults(func=_cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    try:
        return int(args.func(args))
    except (DocsigError, OSError, TypeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
