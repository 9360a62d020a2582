"""CLI for gemsign - gemtext parsing and signed directory manifests."""

import argparse
import getpass
import json
import logging
import os
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .core.errors import GemsignError, MissingMetadata
from .crypto.keys import PrivateKey, generate
from .gemtext.meta import read_post_meta
from .manifest.builder import build_manifest, render_manifest
from .manifest.hashing import hash_file
from .manifest.signing import parse_signed_manifest, sign_directory, verify_signed_manifest
from .runtime import build_runtime

PRIVATE_KEY_ENV = "GEMSIGN_PRIVATE_KEY"


def cmd_new_key(args: argparse.Namespace, rt: Any) -> int:
    """Generate a new private key and print it with its UserID."""
    pair = generate()
    try:
        if args.json:
            print(json.dumps({
                "userId": pair.user_id.base58,
                "privateKey": pair.private_key.base58,
            }))
        else:
            print(f" UserID: {pair.user_id.base58}")
            print(f"Private: {pair.private_key.base58}")
    finally:
        pair.private_key.scrub()
    return 0


def cmd_hash_file(args: argparse.Namespace, rt: Any) -> int:
    """Print the base58 SHA-256 of a file."""
    fh = hash_file(Path(args.path), rt.chunk_size)
    if args.json:
        print(json.dumps({"hash": fh.digest.base58, "bytes": fh.size_bytes}))
    else:
        print(fh.digest.base58)
    return 0


def cmd_hash_dir(args: argparse.Namespace, rt: Any) -> int:
    """Print an unsigned manifest for a directory."""
    manifest = build_manifest(
        Path(args.path),
        ignored=rt.ignored,
        workers=rt.workers,
        chunk_size=rt.chunk_size,
    )
    print(render_manifest(manifest))
    return 0


def _read_private_key() -> PrivateKey | None:
    text = os.environ.get(PRIVATE_KEY_ENV)
    if not text:
        text = getpass.getpass("Private key: ")
    text = text.strip()
    if not text:
        return None
    return PrivateKey.from_base58(text)


def cmd_sign(args: argparse.Namespace, rt: Any) -> int:
    """Create and sign a manifest for a directory."""
    dir_path = Path(args.path)
    signature_file = args.signature_file or rt.config.manifest.signature_file
    sig_path = dir_path / signature_file
    if not args.dry_run and sig_path.exists():
        print(f"Error: File already exists: {sig_path}", file=sys.stderr)
        return 1

    priv = _read_private_key()
    if priv is None:
        print("No private key given", file=sys.stderr)
        return 1
    try:
        signed = sign_directory(
            dir_path,
            priv,
            signature_file=signature_file,
            ignored=rt.ignored,
            workers=rt.workers,
            chunk_size=rt.chunk_size,
            write=not args.dry_run,
        )
    finally:
        priv.scrub()

    if not args.quiet:
        print(signed.render())
        if not args.dry_run:
            print(f"✅ Done: {sig_path}")
    return 0


def cmd_verify(args: argparse.Namespace, rt: Any) -> int:
    """Check a signed manifest's signature."""
    text = Path(args.path).read_text(encoding="utf-8")
    signed = parse_signed_manifest(text)
    ok = verify_signed_manifest(signed)
    if args.json:
        print(json.dumps({"valid": ok, "userId": signed.signer_id.base58}))
    elif not args.quiet:
        mark = "✓" if ok else "✗"
        state = "valid" if ok else "INVALID"
        print(f"{mark} Signature {state} for {signed.signer_id.base58}")
    return 0 if ok else 1


def cmd_parse(args: argparse.Namespace, rt: Any) -> int:
    """Print the parsed units of a gemtext file."""
    units = rt.parser.iter_file(Path(args.path))
    if args.json:
        print(json.dumps([u.to_dict() for u in units], indent=2))
        return 0
    for u in units:
        print(f"{u.kind}\t{json.dumps(u.to_dict(), ensure_ascii=False)}")
    return 0


def cmd_meta(args: argparse.Namespace, rt: Any) -> int:
    """Print the title and date of a gemtext post."""
    try:
        meta = read_post_meta(Path(args.path))
    except MissingMetadata as e:
        print(f"Warning: {e}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps({"title": meta.title, "date": meta.date.isoformat()}))
    else:
        print(f"{meta.date.isoformat()}\t{meta.title}")
    return 0


def version_text() -> str:
    return "\n".join([
        f"gemsign {__version__}",
        f"python {platform.python_version()}",
        f"platform {platform.platform()}",
    ])


class _VersionAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        print(version_text())
        parser.exit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemsign", description="Gemtext parsing and signed directory manifests"
    )
    parser.add_argument(
        "--version", action=_VersionAction, help="Show version information and exit"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/gemsign.toml, <dir>/gemsign.toml)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging to stderr"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # new-key command
    subparsers.add_parser("new-key", help="Generate a new private key (and UserID)")

    # hash command
    parser_hash = subparsers.add_parser("hash", help="Hash functions")
    hash_sub = parser_hash.add_subparsers(dest="hash_cmd", required=True)
    parser_hash_file = hash_sub.add_parser("file", help="SHA-256 hash of a file")
    parser_hash_file.add_argument("path", help="File to hash")
    parser_hash_dir = hash_sub.add_parser("dir", help="Unsigned manifest of a directory")
    parser_hash_dir.add_argument("path", help="Directory to hash")

    # sign command
    parser_sign = subparsers.add_parser(
        "sign", help="Create and sign a manifest for a directory"
    )
    parser_sign.add_argument("path", help="Directory to sign")
    parser_sign.add_argument(
        "--signature-file",
        dest="signature_file",
        default=None,
        help="File to put the signature and manifest into (default: sig.gmi)",
    )
    parser_sign.add_argument(
        "--dry-run", action="store_true", help="Print the signed manifest without writing"
    )

    # verify command
    parser_verify = subparsers.add_parser("verify", help="Verify a signed manifest")
    parser_verify.add_argument("path", help="Signed manifest file")

    # parse command
    parser_parse = subparsers.add_parser("parse", help="Print parsed gemtext units")
    parser_parse.add_argument("path", help="Gemtext file")

    # meta command
    parser_meta = subparsers.add_parser("meta", help="Print title and date of a post")
    parser_meta.add_argument("path", help="Gemtext file")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    root = None
    if args.cmd == "sign" or getattr(args, "hash_cmd", None) == "dir":
        root = Path(args.path)
    rt = build_runtime(config_path=args.config, root=root)

    handlers = {
        "new-key": cmd_new_key,
        "sign": cmd_sign,
        "verify": cmd_verify,
        "parse": cmd_parse,
        "meta": cmd_meta,
    }

    # Handle hash subcommand
    if args.cmd == "hash":
        hash_handlers = {
            "file": cmd_hash_file,
            "dir": cmd_hash_dir,
        }
        handler = hash_handlers.get(args.hash_cmd)
    else:
        handler = handlers.get(args.cmd)

    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except (GemsignError, OSError, UnicodeDecodeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
