"""
Signify Checksum Lists

A checksum list is the message of a signed file in the BSD checksum format:

    SHA256 (payload.zip) = 3b1a...e9
    SHA512 (module/a.txt) = c3d7...80

One line per file, blank lines ignored. Entries are only marked trusted
when the list text came out of a verified signature.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Union

from .errors import (
    ChecksumComputationError,
    ChecksumMismatchError,
    IOFailureError,
    MalformedFormatError,
    UnsupportedFeatureError,
)
from .hashing import HASH_ALGORITHM_DIGEST_LENGTHS, digest_length, file_digest, verify_digest

ESCAPE_CHAR = "\\"
FILENAME_OPEN = " ("
DIGEST_SEPARATOR = ") = "


@dataclass(frozen=True)
class FileChecksum:
    """One entry of a checksum list."""
    filename: str
    algorithm: str
    hex_hash: str
    trusted: bool = False

    @property
    def digest_length(self) -> int:
        return digest_length(self.algorithm)


def parse_checksum_line(line: str, list_is_trusted: bool) -> FileChecksum:
    """
    Parse one non-empty checksum list line.

    The digest length comes from the algorithm; the ") = " separator and the
    " (" opener are matched separately so the filename may contain either.

    Raises:
        UnsupportedFeatureError: Unknown algorithm or escaped filename
        MalformedFormatError: Line does not have the expected shape
    """
    if line.startswith(ESCAPE_CHAR):
        raise UnsupportedFeatureError(
            "Filenames with problematic characters are not yet supported."
        )

    algorithm = line.split(" ", 1)[0]
    if algorithm not in HASH_ALGORITHM_DIGEST_LENGTHS:
        raise UnsupportedFeatureError(
            f'Algorithm "{algorithm}" is unsupported for checksum verification.',
            {"algorithm": algorithm}
        )

    length = digest_length(algorithm)
    prefix = algorithm + FILENAME_OPEN
    suffix_start = len(line) - length - len(DIGEST_SEPARATOR)
    if (
        not line.startswith(prefix)
        or suffix_start < len(prefix)
        or line[suffix_start:-length] != DIGEST_SEPARATOR
    ):
        raise MalformedFormatError(
            f'Malformed checksum line for algorithm "{algorithm}".',
            {"algorithm": algorithm, "line": line}
        )

    filename = line[len(prefix):suffix_start]
    if filename.startswith(ESCAPE_CHAR):
        raise UnsupportedFeatureError(
            "Filenames with problematic characters are not yet supported."
        )

    return FileChecksum(
        filename=filename,
        algorithm=algorithm,
        hex_hash=line[-length:],
        trusted=list_is_trusted,
    )


def parse_checksum_list(checksum_list_raw: Union[bytes, str], list_is_trusted: bool) -> List[FileChecksum]:
    if isinstance(checksum_list_raw, bytes):
        try:
            checksum_list_raw = checksum_list_raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedFormatError("Checksum list is not valid UTF-8 text.") from e

    checksums = []
    for line in checksum_list_raw.split("\n"):
        if line.strip() == "":
            continue
        checksums.append(parse_checksum_line(line, list_is_trusted))
    return checksums


def file_path(checksum: FileChecksum, base_directory: Union[str, Path]) -> Path:
    """Location of a listed file relative to the base directory."""
    return Path(f"{base_directory}{os.sep}{checksum.filename}")


def verify_file_checksum(checksum: FileChecksum, base_directory: Union[str, Path]) -> None:
    """
    Recompute a listed file's digest and compare it with the recorded one.

    Raises:
        IOFailureError: The file could not be read
        ChecksumComputationError: The digest came back empty or truncated
        ChecksumMismatchError: The digest differs
    """
    details = {"filename": checksum.filename, "algorithm": checksum.algorithm}
    try:
        actual_hash = file_digest(checksum.algorithm, file_path(checksum, base_directory))
    except (OSError, ValueError) as e:
        raise IOFailureError(
            f'File "{checksum.filename}" in the checksum list could not be read.',
            details
        ) from e

    if not actual_hash or len(actual_hash) < checksum.digest_length:
        raise ChecksumComputationError(
            f'Failure computing hash for file "{checksum.filename}" in the checksum list.',
            details
        )

    if not verify_digest(checksum.hex_hash, actual_hash):
        raise ChecksumMismatchError(
            f'File "{checksum.filename}" does not pass checksum verification.',
            details
        )


class ChecksumList:
    """
    Ordered, read-only collection of FileChecksum entries.

    Usage:
        checksums = ChecksumList(verifier.verify_message(signed), True)
        for checksum in checksums:
            print(checksum.filename)
    """

    def __init__(self, checksum_list_raw: Union[bytes, str], list_is_trusted: bool):
        self._checksums = tuple(parse_checksum_list(checksum_list_raw, list_is_trusted))

    def __iter__(self) -> Iterator[FileChecksum]:
        return iter(self._checksums)

    def __len__(self) -> int:
        return len(self._checksums)

    def __getitem__(self, index: int) -> FileChecksum:
        return self._checksums[index]

    def __repr__(self) -> str:
        return f"ChecksumList({[c.filename for c in self._checksums]!r})"


class FailedChecksumFilter:
    """
    Lazy view of the entries in a ChecksumList that fail verification.

    Each iteration re-hashes the listed files relative to base_directory and
    yields, in list order, every entry whose file is unreadable or does not
    match. Failures are reported as data and never raised, so this is for
    diagnostics and not for trust decisions.
    """

    def __init__(self, checksum_list: ChecksumList, base_directory: Union[str, Path]):
        self.checksum_list = checksum_list
        self.base_directory = base_directory

    def accept(self, checksum: FileChecksum) -> bool:
        """True when the entry fails verification."""
        try:
            verify_file_checksum(checksum, self.base_directory)
        except (IOFailureError, ChecksumMismatchError):
            return True
        return False

    def __iter__(self) -> Iterator[FileChecksum]:
        return (checksum for checksum in self.checksum_list if self.accept(checksum))

    def __len__(self) -> int:
        return sum(1 for _ in self)
