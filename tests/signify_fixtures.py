"""
Signify test fixtures.

Generates signify-format keys, signatures, checksum lists and chained
signatures with PyNaCl, the way `signify -G` / `signify -S` lay them out.
"""

import base64
import hashlib
import os
from pathlib import Path
from typing import Dict, Optional, Union

from nacl.signing import SigningKey

ALGORITHM = b"Ed"


class SignifyKey:
    """An Ed25519 key pair with a signify key number."""

    def __init__(self, key_num: Optional[bytes] = None, signing_key: Optional[SigningKey] = None):
        self.signing_key = signing_key or SigningKey.generate()
        self.key_num = key_num or os.urandom(8)

    @property
    def raw_public_key(self) -> bytes:
        return bytes(self.signing_key.verify_key)

    def public_key_text(self, comment: str = "signify public key") -> bytes:
        payload = ALGORITHM + self.key_num + self.raw_public_key
        return b"untrusted comment: " + comment.encode() + b"\n" + base64.b64encode(payload) + b"\n"

    def sign(self, message: Union[bytes, str], comment: str = "verify with key.pub") -> bytes:
        """Detached signature block for a message."""
        if isinstance(message, str):
            message = message.encode()
        signature = self.signing_key.sign(message).signature
        payload = ALGORITHM + self.key_num + signature
        return b"untrusted comment: " + comment.encode() + b"\n" + base64.b64encode(payload) + b"\n"

    def sign_embedded(self, message: Union[bytes, str]) -> bytes:
        """Signature block with the message embedded after it (signify -e)."""
        if isinstance(message, str):
            message = message.encode()
        return self.sign(message) + message


def checksum_line(filename: str, data: bytes, algorithm: str = "SHA256") -> str:
    digest = hashlib.new(algorithm.lower(), data).hexdigest()
    return f"{algorithm} ({filename}) = {digest}"


def checksum_list(files: Dict[str, bytes], algorithm: str = "SHA256") -> bytes:
    return "".join(checksum_line(name, data, algorithm) + "\n" for name, data in files.items()).encode()


def make_csig(
    root: SignifyKey,
    intermediate: SignifyKey,
    valid_through: str,
    message: Union[bytes, str]
) -> bytes:
    """Root-signed intermediate key and date, followed by the intermediate-signed message."""
    endorsement = valid_through.encode() + b"\n" + intermediate.public_key_text("intermediate public key")
    return root.sign(endorsement, "verify with root.pub") + endorsement + intermediate.sign_embedded(message)


def write_files(directory: Union[str, Path], files: Dict[str, bytes]) -> None:
    for name, data in files.items():
        path = Path(directory) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
