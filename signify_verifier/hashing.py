"""
Signify Checksum Hashing

File digests for checksum lists, in the lowercase hexadecimal form that
sha256(1) / sha512(1) and signify -C use.
"""

import hashlib
from pathlib import Path
from typing import Dict, Union

from .util import constant_time_compare

# Supported checksum list algorithms and the length of their hex digests.
HASH_ALGORITHM_DIGEST_LENGTHS: Dict[str, int] = {
    "SHA256": 64,
    "SHA512": 128,
}

CHUNK_SIZE = 64 * 1024


def digest_length(algorithm: str) -> int:
    """Expected hex digest length for a checksum list algorithm."""
    return HASH_ALGORITHM_DIGEST_LENGTHS[algorithm]


def file_digest(algorithm: str, path: Union[str, Path]) -> str:
    """
    Compute the hex digest of a file.

    Args:
        algorithm: Checksum list algorithm name ("SHA256" or "SHA512")
        path: File to hash

    Returns:
        Lowercase hexadecimal digest

    Raises:
        OSError: If the file cannot be opened or read
        ValueError: If the path is not a valid file name (embedded NUL)
    """
    h = hashlib.new(algorithm.lower())
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest().lower()


def verify_digest(declared_hash: str, computed_hash: str) -> bool:
    """
    Check a computed digest against the declared one.

    Verifiers MUST recompute hashes from source data; this only compares.
    """
    return constant_time_compare(declared_hash, computed_hash)
