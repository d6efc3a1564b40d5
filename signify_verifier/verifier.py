"""
Signify Verification

Verifies signify signatures, signed checksum lists and chained signatures
(.csig) against a trusted public key.

Verification is all-or-nothing: the first problem raises a VerifierError
and nothing is returned for a partially valid input.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .chain import ChainLink
from .checksums import ChecksumList, verify_file_checksum
from .encoding import (
    PUBLIC_KEY_BYTES,
    SIGNATURE_BYTES,
    KeyMaterial,
    parse_b64_string,
    split_signed_message,
)
from .errors import (
    ChecksumMismatchError,
    ExpiredError,
    IOFailureError,
    KeyMismatchError,
    MalformedFormatError,
    SignatureInvalidError,
    VerifierError,
)
from .logging_config import audit_log
from .signing import verify_signature
from .util import DateLike, ensure_bytes, parse_iso_date, to_utc_date, utc_now

Clock = Callable[[], datetime]


class Verifier:
    """
    Signify verifier bound to one public key.

    The public key is parsed on first use and cached on the instance.
    Instances hold no other state, so one verifier may be shared freely.

    Usage:
        verifier = Verifier(open("release.pub", "rb").read())

        # Signature file with the message embedded after it
        message = verifier.verify_message(open("release.sig", "rb").read())

        # Signed checksum list next to the files it covers
        count = verifier.verify_checksum_file("release/SHA256.sig")

        # Root key endorsing a dated intermediate key
        message = verifier.verify_csig_message(csig, now="2019-09-10")
    """

    def __init__(self, public_key_raw: Union[bytes, str], clock: Optional[Clock] = None):
        """
        Initialize verifier.

        Args:
            public_key_raw: Contents of a signify public key file
            clock: Source of the current time (default: UTC system clock)
        """
        self._public_key_raw = public_key_raw
        self._public_key: Optional[KeyMaterial] = None
        self._clock = clock or utc_now

    def get_public_key_raw(self) -> Union[bytes, str]:
        """The public key text this verifier was created with."""
        return self._public_key_raw

    def get_public_key(self) -> KeyMaterial:
        if self._public_key is None:
            self._public_key = parse_b64_string(self._public_key_raw, PUBLIC_KEY_BYTES)
        return self._public_key

    def get_now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Signatures
    # ------------------------------------------------------------------

    def verify_message(self, signed_message: Union[bytes, str]) -> bytes:
        """
        Verify a signature file whose message follows the signature block.

        This covers both a signify -e embedded signature and a detached
        signature with the message appended (signature + message).

        Args:
            signed_message: Contents of the .sig file (plus message)

        Returns:
            The message bytes if the verification passed

        Raises:
            VerifierError: If the signature or the key is not valid
        """
        signature, message = split_signed_message(signed_message)
        return self._verify_signature_block(signature, message)

    def verify_detached_message(self, signature: Union[bytes, str], message: Union[bytes, str]) -> bytes:
        """
        Verify a bare signature file against a separately supplied message.

        The signature must be exactly the two-line signature block.
        """
        return self._verify_signature_block(ensure_bytes(signature), ensure_bytes(message))

    def _verify_signature_block(self, signature: bytes, message: bytes) -> bytes:
        try:
            # Step 1: Resolve the trusted key
            pubkey = self.get_public_key()

            # Step 2: Parse the signature block
            sig = parse_b64_string(signature, SIGNATURE_BYTES)

            # Step 3: Key numbers must match before any cryptography runs
            if not pubkey.same_key(sig):
                raise KeyMismatchError(
                    "verification failed: checked against wrong key",
                    {"public_key_num": pubkey.key_num.hex(), "signature_key_num": sig.key_num.hex()}
                )

            # Step 4: Ed25519 verification
            if not verify_signature(message, sig.data, pubkey.data):
                raise SignatureInvalidError("Signature did not match")
        except VerifierError as e:
            audit_log.verification_failed(e.kind.value, e.message, **e.details)
            raise

        audit_log.signature_verified(pubkey.key_num, len(message))
        return message

    # ------------------------------------------------------------------
    # Checksum lists
    # ------------------------------------------------------------------

    def verify_checksum_list(self, signed_checksum_list: Union[bytes, str], working_directory: Union[str, Path]) -> int:
        """
        Verify a signed checksum list, then every file in the list.

        Args:
            signed_checksum_list: Signature file whose message is a checksum list
            working_directory: Directory the checksum list is relative to

        Returns:
            The number of files verified
        """
        checksum_list_raw = self.verify_message(signed_checksum_list)
        return self._verify_checksums(checksum_list_raw, working_directory)

    def verify_checksum_file(self, checksum_file: Union[str, Path]) -> int:
        """
        Verify a signed checksum list file and the files next to it.

        Returns:
            The number of files verified
        """
        signed_checksum_list, working_directory = self._read_checksum_file(checksum_file)
        return self.verify_checksum_list(signed_checksum_list, working_directory)

    def _verify_checksums(self, checksum_list_raw: bytes, working_directory: Union[str, Path]) -> int:
        checksum_list = ChecksumList(checksum_list_raw, True)
        verified_count = 0

        for file_checksum in checksum_list:
            try:
                verify_file_checksum(file_checksum, working_directory)
            except (IOFailureError, ChecksumMismatchError) as e:
                audit_log.checksum_failed(file_checksum.filename, file_checksum.algorithm, e.message)
                raise
            verified_count += 1

        audit_log.checksum_list_verified(verified_count, str(working_directory))
        return verified_count

    @staticmethod
    def _read_checksum_file(checksum_file: Union[str, Path]):
        """
        Read a checksum list file.

        Returns:
            Tuple of (file contents, directory containing the file)
        """
        try:
            absolute_path = Path(checksum_file).resolve(strict=True)
        except (OSError, RuntimeError, ValueError) as e:
            raise IOFailureError(
                f'The real path of checksum list file at "{checksum_file}" could not be determined.',
                {"path": str(checksum_file)}
            ) from e

        try:
            signed_checksum_list = absolute_path.read_bytes()
        except OSError as e:
            raise IOFailureError(
                f'The checksum list file at "{checksum_file}" could not be read.',
                {"path": str(checksum_file)}
            ) from e
        if not signed_checksum_list:
            raise IOFailureError(
                f'The checksum list file at "{checksum_file}" could not be read.',
                {"path": str(checksum_file)}
            )

        return signed_checksum_list, absolute_path.parent

    # ------------------------------------------------------------------
    # Chained signatures
    # ------------------------------------------------------------------

    def verify_csig_message(self, chained_signed_message: Union[bytes, str], now: Optional[DateLike] = None) -> bytes:
        """
        Verify a root/intermediate chained signature (.csig).

        Steps:
        1. Verify the root signature over the date and intermediate key
        2. Parse the valid-through date
        3. Enforce expiry against now (UTC day granularity, inclusive)
        4. Verify the signed message with the intermediate key

        Args:
            chained_signed_message: Contents of the .csig file
            now: Comparison date (date, datetime or YYYY-MM-DD; default: today in UTC)

        Returns:
            The message if the verification passed
        """
        link = ChainLink.parse(chained_signed_message)

        # Step 1: Root endorsement of date + intermediate key
        self.verify_message(link.root_signed_payload())

        # Step 2: Valid-through date
        try:
            valid_through = parse_iso_date(link.valid_through)
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedFormatError(
                "Unexpected valid-through date format.",
                {"valid_through": link.valid_through.decode('utf-8', errors='replace')}
            ) from e

        # Step 3: Expiry
        today = self._comparison_date(now)
        if today > valid_through:
            days = (today - valid_through).days
            audit_log.intermediate_key_expired(valid_through.isoformat(), days)
            raise ExpiredError(days)

        # Step 4: Delegate to a verifier for the intermediate key
        chained_verifier = Verifier(link.intermediate_public_key(), clock=self._clock)
        message = chained_verifier.verify_message(link.delegated_signed_message())
        audit_log.intermediate_key_accepted(chained_verifier.get_public_key().key_num, valid_through.isoformat())
        return message

    def verify_csig_checksum_list(
        self,
        csig_checksum_list: Union[bytes, str],
        working_directory: Union[str, Path],
        now: Optional[DateLike] = None
    ) -> int:
        """
        Verify a chained-signature checksum list, then every file in the list.

        Returns:
            The number of files verified
        """
        checksum_list_raw = self.verify_csig_message(csig_checksum_list, now)
        return self._verify_checksums(checksum_list_raw, working_directory)

    def verify_csig_checksum_file(self, csig_checksum_file: Union[str, Path], now: Optional[DateLike] = None) -> int:
        signed_checksum_list, working_directory = self._read_checksum_file(csig_checksum_file)
        return self.verify_csig_checksum_list(signed_checksum_list, working_directory, now)

    def _comparison_date(self, now: Optional[DateLike]) -> date:
        if now is None or now == "":
            return to_utc_date(self.get_now())
        try:
            return to_utc_date(now)
        except (ValueError, TypeError) as e:
            raise MalformedFormatError(
                "Unexpected date format of current date.",
                {"now": str(now)}
            ) from e
