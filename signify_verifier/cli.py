#!/usr/bin/env python3
"""
Signify Verifier Command Line Interface

Usage:
    signify-verify verify -p <key.pub> -x <file.sig> [-m <message>] [-o <out>]
    signify-verify verify-csig -p <root.pub> -x <file.csig> [--now YYYY-MM-DD] [-o <out>]
    signify-verify check -p <key.pub> -x <list.sig>
    signify-verify check-csig -p <root.pub> -x <list.csig> [--now YYYY-MM-DD]
    signify-verify failed -p <key.pub> -x <list.sig> [--csig] [--now YYYY-MM-DD]
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .checksums import ChecksumList, FailedChecksumFilter
from .errors import IOFailureError, VerifierError
from .logging_config import configure_logging
from .verifier import Verifier


def read_input(path: str) -> bytes:
    """Read a signature, message or checksum list file."""
    try:
        with open(path, 'rb') as f:
            return f.read()
    except (OSError, ValueError) as e:
        raise IOFailureError(f'The file at "{path}" could not be read.', {"path": path}) from e


def write_output(data: bytes, path: Optional[str]):
    if not path:
        return
    if path == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    else:
        with open(path, 'wb') as f:
            f.write(data)


def make_verifier(args) -> Verifier:
    key_path = config.resolve_public_key_path(args.pubkey)
    if not key_path:
        raise IOFailureError("No public key given; use -p or set SIGNIFY_PUBLIC_KEY_PATH.")
    return Verifier(config.load_public_key(key_path))


def cmd_verify(args):
    """Verify a signature, embedded or detached."""
    verifier = make_verifier(args)
    signature = read_input(args.sigfile)

    if args.message:
        message = verifier.verify_detached_message(signature, read_input(args.message))
    else:
        message = verifier.verify_message(signature)

    write_output(message, args.output)
    print("✓ Signature Verified", file=sys.stderr)
    return 0


def cmd_verify_csig(args):
    """Verify a chained signature."""
    verifier = make_verifier(args)
    message = verifier.verify_csig_message(read_input(args.sigfile), args.now)

    write_output(message, args.output)
    print("✓ Chained Signature Verified", file=sys.stderr)
    return 0


def cmd_check(args):
    """Verify a signed checksum list and the files it lists."""
    verifier = make_verifier(args)
    count = verifier.verify_checksum_file(args.sigfile)
    print(f"✓ {count} file(s) verified")
    return 0


def cmd_check_csig(args):
    verifier = make_verifier(args)
    count = verifier.verify_csig_checksum_file(args.sigfile, args.now)
    print(f"✓ {count} file(s) verified")
    return 0


def cmd_failed(args):
    """List the files of a verified checksum list that do not match."""
    verifier = make_verifier(args)
    signed = read_input(args.sigfile)

    if args.csig:
        checksum_list_raw = verifier.verify_csig_message(signed, args.now)
    else:
        checksum_list_raw = verifier.verify_message(signed)

    checksums = ChecksumList(checksum_list_raw, True)
    failed = list(FailedChecksumFilter(checksums, Path(args.sigfile).resolve().parent))

    for checksum in failed:
        print(f"✗ {checksum.algorithm} ({checksum.filename})")

    if failed:
        print(f"\n{len(failed)} of {len(checksums)} file(s) failed", file=sys.stderr)
        return 1
    print(f"✓ all {len(checksums)} file(s) verified")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signify-verify",
        description="Verify signify signatures, checksum lists and chained signatures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  signify-verify verify -p release.pub -x release.tgz.sig -m release.tgz
  signify-verify verify -p release.pub -x notes.txt.sig -o -
  signify-verify check -p release.pub -x SHA256.sig
  signify-verify check-csig -p root.pub -x module.csig --now 2019-09-01
  signify-verify failed -p root.pub -x module.csig --csig
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_common(sub, sig_help):
        sub.add_argument("-p", "--pubkey", help="Public key file (default: $SIGNIFY_PUBLIC_KEY_PATH)")
        sub.add_argument("-x", "--sigfile", required=True, help=sig_help)

    def add_now(sub):
        sub.add_argument(
            "--now",
            default=config.NOW_OVERRIDE,
            help="Comparison date YYYY-MM-DD (default: $SIGNIFY_NOW or today in UTC)"
        )

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a signature")
    add_common(verify_parser, "Signature file")
    verify_parser.add_argument("-m", "--message", help="Message file for a detached signature")
    verify_parser.add_argument("-o", "--output", help="Write the verified message here ('-' for stdout)")

    # verify-csig
    csig_parser = subparsers.add_parser("verify-csig", help="Verify a chained signature")
    add_common(csig_parser, "Chained signature (.csig) file")
    add_now(csig_parser)
    csig_parser.add_argument("-o", "--output", help="Write the verified message here ('-' for stdout)")

    # check
    check_parser = subparsers.add_parser("check", help="Verify a signed checksum list")
    add_common(check_parser, "Signed checksum list")

    # check-csig
    check_csig_parser = subparsers.add_parser("check-csig", help="Verify a chained-signature checksum list")
    add_common(check_csig_parser, "Chained-signature checksum list")
    add_now(check_csig_parser)

    # failed
    failed_parser = subparsers.add_parser("failed", help="List files failing checksum verification")
    add_common(failed_parser, "Signed checksum list")
    failed_parser.add_argument("--csig", action="store_true", help="The list is a chained signature")
    add_now(failed_parser)

    return parser


COMMANDS = {
    "verify": cmd_verify,
    "verify-csig": cmd_verify_csig,
    "check": cmd_check,
    "check-csig": cmd_check_csig,
    "failed": cmd_failed,
}


def run(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 2

    configure_logging(config.LOG_LEVEL, config.use_json_logs(), config.LOG_FILE)

    try:
        return command(args)
    except VerifierError as e:
        print(f"✗ {e.kind.value}: {e.message}", file=sys.stderr)
        if config.is_debug() and e.details:
            print(json.dumps(e.details, indent=2), file=sys.stderr)
        return 1


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
