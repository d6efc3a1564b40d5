"""
Signify Verifier Error Taxonomy

Every verification failure is raised as a VerifierError subclass carrying
a kind, a human-readable message and optional details. A failure always
aborts the enclosing operation; nothing is retried internally.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure kinds reported by the verifier."""
    MALFORMED_FORMAT = "MALFORMED_FORMAT"
    KEY_MISMATCH = "KEY_MISMATCH"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"
    IO_FAILURE = "IO_FAILURE"
    CHECKSUM_MISMATCH = "CHECKSUM_MISMATCH"
    EXPIRED = "EXPIRED"


class VerifierError(Exception):
    """
    Base exception for all verification failures.

    Attributes:
        kind: ErrorKind of the failure
        message: Human-readable error message
        details: Additional context (filename, algorithm, days, ...)
    """
    kind: ErrorKind = ErrorKind.MALFORMED_FORMAT

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class MalformedFormatError(VerifierError):
    """Input does not follow the signify, checksum list or csig format."""
    kind = ErrorKind.MALFORMED_FORMAT


class KeyMismatchError(VerifierError):
    """Signature was made by a different key than the one checked against."""
    kind = ErrorKind.KEY_MISMATCH


class SignatureInvalidError(VerifierError):
    """Ed25519 verification rejected the signature."""
    kind = ErrorKind.SIGNATURE_INVALID


class UnsupportedFeatureError(VerifierError):
    kind = ErrorKind.UNSUPPORTED_FEATURE


class IOFailureError(VerifierError):
    kind = ErrorKind.IO_FAILURE


class ChecksumMismatchError(VerifierError):
    """A listed file does not hash to its recorded digest."""
    kind = ErrorKind.CHECKSUM_MISMATCH


class ChecksumComputationError(ChecksumMismatchError):
    """The digest of a listed file came back empty or truncated."""


class ExpiredError(VerifierError):
    """The intermediate key of a chained signature is past its validity date."""
    kind = ErrorKind.EXPIRED

    def __init__(self, days: int):
        super().__init__(
            f"The intermediate key expired {days} day(s) ago.",
            {"days": days}
        )
        self.days = days
