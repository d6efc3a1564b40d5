"""
Signify Verifier

Version: 1.0.0
License: Apache 2.0

Verification of signify (OpenBSD) Ed25519 signatures, signed checksum lists
and root/intermediate chained signatures.

A signify public key or signature is two lines:

    untrusted comment: <free text>
    <base64 of: "Ed" || 8-byte key number || 32-byte key / 64-byte signature>

Chained signatures (.csig) let an offline root key endorse a short-lived
intermediate key until a validity date; the intermediate key then signs the
actual message, typically a checksum list.

Usage:
    from signify_verifier import Verifier, ChecksumList, FailedChecksumFilter

    verifier = Verifier(open("root.pub", "rb").read())

    # Signed message
    message = verifier.verify_message(open("notes.txt.sig", "rb").read())

    # Signed checksum list; raises on the first file that does not match
    count = verifier.verify_checksum_file("release/SHA512.sig")

    # Chained signature, with an explicit comparison date
    message = verifier.verify_csig_message(open("module.csig", "rb").read(), now="2019-09-20")

    # Which files are broken? (diagnostics only, never raises per file)
    failed = FailedChecksumFilter(ChecksumList(message, True), "module/")
    for checksum in failed:
        print(checksum.filename)

All failures raise a VerifierError subclass.
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Errors
from .errors import (
    ErrorKind,
    VerifierError,
    MalformedFormatError,
    KeyMismatchError,
    SignatureInvalidError,
    UnsupportedFeatureError,
    IOFailureError,
    ChecksumMismatchError,
    ChecksumComputationError,
    ExpiredError,
)

# Key and signature encoding
from .encoding import (
    COMMENTHDR,
    COMMENTHDRLEN,
    COMMENTMAXLEN,
    KeyMaterial,
    parse_b64_string,
    split_signed_message,
)

# Checksum lists
from .checksums import (
    FileChecksum,
    ChecksumList,
    FailedChecksumFilter,
    parse_checksum_line,
)
from .hashing import HASH_ALGORITHM_DIGEST_LENGTHS, file_digest

# Chained signatures
from .chain import ChainLink

# Verifier
from .verifier import Verifier


__all__ = [
    # Version
    "__version__",

    # Errors
    "ErrorKind",
    "VerifierError",
    "MalformedFormatError",
    "KeyMismatchError",
    "SignatureInvalidError",
    "UnsupportedFeatureError",
    "IOFailureError",
    "ChecksumMismatchError",
    "ChecksumComputationError",
    "ExpiredError",

    # Encoding
    "COMMENTHDR",
    "COMMENTHDRLEN",
    "COMMENTMAXLEN",
    "KeyMaterial",
    "parse_b64_string",
    "split_signed_message",

    # Checksum lists
    "FileChecksum",
    "ChecksumList",
    "FailedChecksumFilter",
    "parse_checksum_line",
    "HASH_ALGORITHM_DIGEST_LENGTHS",
    "file_digest",

    # Chained signatures
    "ChainLink",

    # Verifier
    "Verifier",
]
