"""
Signify Key and Signature Encoding

Parses the two-line text format shared by signify public keys and
signatures:

    untrusted comment: <free text>
    <base64 of: algorithm (2) || key number (8) || data (32 or 64)>

and splits a signature file into its signature block and the message
embedded after it.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Tuple, Union

from .errors import MalformedFormatError, UnsupportedFeatureError
from .util import ensure_bytes

COMMENTHDR = b"untrusted comment: "
COMMENTHDRLEN = len(COMMENTHDR)
COMMENTMAXLEN = 1024

ALGORITHM_ED25519 = b"Ed"
ALGORITHM_BYTES = 2
KEYNUM_BYTES = 8

PUBLIC_KEY_BYTES = 32
SIGNATURE_BYTES = 64


@dataclass(frozen=True)
class KeyMaterial:
    """Decoded signify public key or signature."""
    comment: str
    algorithm: bytes
    key_num: bytes
    data: bytes

    def to_bytes(self) -> bytes:
        """Re-encode the decoded payload (before base64)."""
        return self.algorithm + self.key_num + self.data

    def same_key(self, other: "KeyMaterial") -> bool:
        return self.key_num == other.key_num


def decode_payload(b64: bytes, length: int) -> Tuple[bytes, bytes, bytes]:
    """
    Decode the base64 line of a key or signature.

    Returns:
        Tuple of (algorithm, key_num, data)
    """
    try:
        decoded = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedFormatError("Data could not be decoded.") from e

    if len(decoded) != ALGORITHM_BYTES + KEYNUM_BYTES + length:
        raise MalformedFormatError(
            "Data does not match expected length.",
            {"expected": ALGORITHM_BYTES + KEYNUM_BYTES + length, "actual": len(decoded)}
        )

    algorithm = decoded[:ALGORITHM_BYTES]
    if algorithm != ALGORITHM_ED25519:
        raise UnsupportedFeatureError(
            f"Signature algorithm {algorithm!r} is unsupported.",
            {"algorithm": algorithm.hex()}
        )

    key_num = decoded[ALGORITHM_BYTES:ALGORITHM_BYTES + KEYNUM_BYTES]
    data = decoded[ALGORITHM_BYTES + KEYNUM_BYTES:]
    return algorithm, key_num, data


def parse_b64_string(b64: Union[bytes, str], length: int) -> KeyMaterial:
    """
    Parse the contents of a signify key or signature file.

    Args:
        b64: The file contents
        length: The length of the data, either 32 or 64 bytes

    Returns:
        KeyMaterial with the decoded fields

    Raises:
        MalformedFormatError: If the text is not a well-formed key/signature
        UnsupportedFeatureError: If the algorithm is not Ed25519
    """
    parts = ensure_bytes(b64).split(b"\n")
    if len(parts) != 3 or parts[2]:
        raise MalformedFormatError(
            "Invalid format; must contain two newlines, one after comment and one after base64"
        )

    comment = parts[0]
    if not comment.startswith(COMMENTHDR):
        raise MalformedFormatError(
            f"Invalid format; comment must start with '{COMMENTHDR.decode()}'"
        )
    if len(comment) > COMMENTHDRLEN + COMMENTMAXLEN:
        raise MalformedFormatError(
            f"Invalid format; comment longer than {COMMENTMAXLEN} bytes"
        )

    algorithm, key_num, data = decode_payload(parts[1], length)
    return KeyMaterial(
        comment=comment[COMMENTHDRLEN:].decode('utf-8', errors='replace'),
        algorithm=algorithm,
        key_num=key_num,
        data=data,
    )


def split_signed_message(signed_message: Union[bytes, str]) -> Tuple[bytes, bytes]:
    """
    Split a signature file into its signature block and embedded message.

    The signature block runs up to and including the second newline. Anything
    after it is the message, which is empty for a bare signature. No validation
    happens here; parse_b64_string() rejects a bad signature block.
    """
    data = ensure_bytes(signed_message)
    first = data.find(b"\n")
    second = data.find(b"\n", first + 1) if first != -1 else -1
    if second == -1:
        return data, b""
    return data[:second + 1], data[second + 1:]
