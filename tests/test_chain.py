"""
Signify Chained Signature Tests

Root endorsement of an intermediate key, validity date enforcement and
delegated verification of the final message.
"""

import tempfile
import unittest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from signify_verifier import (
    ChainLink,
    ChecksumList,
    ExpiredError,
    FailedChecksumFilter,
    KeyMismatchError,
    MalformedFormatError,
    SignatureInvalidError,
    Verifier,
    VerifierError,
)
from tests.signify_fixtures import SignifyKey, checksum_list, make_csig, write_files

PAYLOAD = b"PK\x03\x04 release payload"
MESSAGE = checksum_list({"payload.zip": PAYLOAD}, "SHA512")
VALID_THROUGH = "2019-09-10"


class CsigTestCase(unittest.TestCase):

    def setUp(self):
        self.root = SignifyKey()
        self.intermediate = SignifyKey()
        self.verifier = Verifier(self.root.public_key_text())
        self.csig = make_csig(self.root, self.intermediate, VALID_THROUGH, MESSAGE)


class TestChainLink(CsigTestCase):

    def test_parse(self):
        link = ChainLink.parse(self.csig)
        self.assertTrue(link.root_comment.startswith(b"untrusted comment: "))
        self.assertEqual(link.valid_through, VALID_THROUGH.encode())
        self.assertEqual(link.intermediate_public_key(), self.intermediate.public_key_text("intermediate public key"))
        self.assertTrue(link.delegated_signed_message().endswith(MESSAGE))

    def test_root_signed_payload_is_prefix(self):
        link = ChainLink.parse(self.csig)
        self.assertTrue(self.csig.startswith(link.root_signed_payload()))

    def test_too_few_parts(self):
        with self.assertRaisesRegex(MalformedFormatError, "expected 6 parts"):
            ChainLink.parse(b"untrusted comment: a\nAAAA\n2019-09-10\n")


class TestVerifyCsigMessage(CsigTestCase):

    def test_positive_csig_verification(self):
        for now in (
            datetime(2000, 1, 1, tzinfo=timezone.utc),
            datetime(2019, 9, 9, tzinfo=timezone.utc),
            datetime(2019, 9, 10, tzinfo=timezone.utc),
        ):
            with self.subTest(now=now):
                self.assertEqual(self.verifier.verify_csig_message(self.csig, now), MESSAGE)

    def test_now_as_date_and_string(self):
        self.assertEqual(self.verifier.verify_csig_message(self.csig, date(2019, 9, 10)), MESSAGE)
        self.assertEqual(self.verifier.verify_csig_message(self.csig, "2019-09-10"), MESSAGE)

    def test_expired_csig_verification(self):
        with self.assertRaisesRegex(ExpiredError, r"The intermediate key expired 1 day\(s\) ago."):
            self.verifier.verify_csig_message(self.csig, datetime(2019, 9, 11, tzinfo=timezone.utc))

    def test_expired_day_count(self):
        with self.assertRaises(ExpiredError) as ctx:
            self.verifier.verify_csig_message(self.csig, "2019-10-10")
        self.assertEqual(ctx.exception.days, 30)
        self.assertEqual(ctx.exception.details, {"days": 30})

    def test_time_of_day_ignored(self):
        late = datetime(2019, 9, 10, 23, 59, 59, tzinfo=timezone.utc)
        self.assertEqual(self.verifier.verify_csig_message(self.csig, late), MESSAGE)

    def test_aware_datetime_converted_to_utc(self):
        """01:00 at UTC+5 on the 11th is still the 10th in UTC."""
        now = datetime(2019, 9, 11, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        self.assertEqual(self.verifier.verify_csig_message(self.csig, now), MESSAGE)

    def test_default_now(self):
        future = make_csig(self.root, self.intermediate, "2999-12-31", MESSAGE)
        self.assertEqual(self.verifier.verify_csig_message(future), MESSAGE)

        with self.assertRaises(ExpiredError):
            self.verifier.verify_csig_message(self.csig)

    def test_injected_clock(self):
        verifier = Verifier(
            self.root.public_key_text(),
            clock=lambda: datetime(2019, 9, 12, 8, 0, tzinfo=timezone.utc)
        )
        with self.assertRaises(ExpiredError) as ctx:
            verifier.verify_csig_message(self.csig)
        self.assertEqual(ctx.exception.days, 2)

    def test_default_get_now(self):
        now = datetime.now(timezone.utc)
        self.assertLess(abs((now - self.verifier.get_now()).total_seconds()), 5)

    def test_bad_now_format(self):
        with self.assertRaisesRegex(MalformedFormatError, "Unexpected date format of current date."):
            self.verifier.verify_csig_message(self.csig, "next tuesday")

    def test_bad_valid_through_format(self):
        csig = make_csig(self.root, self.intermediate, "10/09/2019", MESSAGE)
        with self.assertRaisesRegex(MalformedFormatError, "Unexpected valid-through date format."):
            self.verifier.verify_csig_message(csig, "2019-09-01")

    def test_wrong_root_key(self):
        verifier = Verifier(SignifyKey().public_key_text())
        with self.assertRaises(KeyMismatchError):
            verifier.verify_csig_message(self.csig, "2019-09-01")

    def test_intermediate_key_is_not_a_root(self):
        verifier = Verifier(self.intermediate.public_key_text())
        with self.assertRaises(KeyMismatchError):
            verifier.verify_csig_message(self.csig, "2019-09-01")

    def test_tampered_message(self):
        with self.assertRaises(SignatureInvalidError):
            self.verifier.verify_csig_message(self.csig + b"extra", "2019-09-01")

    def test_message_signed_by_other_intermediate(self):
        other = SignifyKey()
        csig = ChainLink.parse(self.csig).root_signed_payload() + other.sign_embedded(MESSAGE)
        with self.assertRaises(KeyMismatchError):
            self.verifier.verify_csig_message(csig, "2019-09-01")

    def test_malformed_intermediate_key_logged(self):
        """A root-endorsed but unparsable intermediate key is logged as a failure."""
        endorsement = b"2019-09-10\nuntrusted comment: intermediate public key\nAAAA\n"
        csig = self.root.sign(endorsement) + endorsement + self.intermediate.sign_embedded(MESSAGE)

        with self.assertLogs("signify_verifier.audit", level="INFO") as logs:
            with self.assertRaisesRegex(MalformedFormatError, "Data does not match expected length."):
                self.verifier.verify_csig_message(csig, "2019-09-01")

        events = [r.extra_fields["event_type"] for r in logs.records]
        self.assertEqual(events, ["SIGNATURE_VERIFIED", "VERIFICATION_FAILED"])
        self.assertEqual(logs.records[-1].extra_fields["kind"], "MALFORMED_FORMAT")

    def test_intermediate_key_accepted_after_message_verifies(self):
        with self.assertLogs("signify_verifier.audit", level="INFO") as logs:
            self.verifier.verify_csig_message(self.csig, "2019-09-01")

        events = [r.extra_fields["event_type"] for r in logs.records]
        self.assertEqual(events, ["SIGNATURE_VERIFIED", "SIGNATURE_VERIFIED", "INTERMEDIATE_KEY_ACCEPTED"])


class TestChainAtomicity(CsigTestCase):
    """Changing any signed part of the endorsement breaks the root signature."""

    def mutate(self, index, value):
        parts = self.csig.split(b"\n", 5)
        parts[index] = value
        return b"\n".join(parts)

    def assert_rejected(self, csig):
        with self.assertRaises(VerifierError):
            self.verifier.verify_csig_message(csig, "2019-09-01")

    def test_root_comment_header(self):
        parts = self.csig.split(b"\n", 5)
        self.assert_rejected(self.mutate(0, parts[0].replace(b"untrusted", b"trusted")))

    def test_root_signature(self):
        other_signature = self.root.sign(b"something else").split(b"\n")[1]
        with self.assertRaises(SignatureInvalidError):
            self.verifier.verify_csig_message(self.mutate(1, other_signature), "2019-09-01")

    def test_extended_date(self):
        with self.assertRaises(SignatureInvalidError):
            self.verifier.verify_csig_message(self.mutate(2, b"2099-12-31"), "2019-09-01")

    def test_intermediate_comment(self):
        with self.assertRaises(SignatureInvalidError):
            self.verifier.verify_csig_message(self.mutate(3, b"untrusted comment: swapped"), "2019-09-01")

    def test_intermediate_key(self):
        other_key = SignifyKey().public_key_text().split(b"\n")[1]
        with self.assertRaises(SignatureInvalidError):
            self.verifier.verify_csig_message(self.mutate(4, other_key), "2019-09-01")

    def test_mix_and_match_endorsements(self):
        """Date from one endorsement, intermediate key from another."""
        other = SignifyKey()
        long_lived = make_csig(self.root, other, "2099-12-31", MESSAGE).split(b"\n", 5)
        short_lived = self.csig.split(b"\n", 5)
        mixed = b"\n".join(long_lived[:3] + short_lived[3:])
        with self.assertRaises(SignatureInvalidError):
            self.verifier.verify_csig_message(mixed, "2050-01-01")


class TestCsigChecksumList(CsigTestCase):

    def setUp(self):
        super().setUp()
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name)
        write_files(self.dir, {"payload.zip": PAYLOAD, "checksumlist.csig": self.csig})

    def test_verify_csig_checksum_list(self):
        count = self.verifier.verify_csig_checksum_list(
            self.csig, self.dir, datetime(2019, 9, 1, tzinfo=timezone.utc)
        )
        self.assertEqual(count, 1)

    def test_verify_csig_checksum_file(self):
        count = self.verifier.verify_csig_checksum_file(
            self.dir / "checksumlist.csig", datetime(2019, 9, 1, tzinfo=timezone.utc)
        )
        self.assertEqual(count, 1)

    def test_expired_checksum_file(self):
        with self.assertRaises(ExpiredError):
            self.verifier.verify_csig_checksum_file(self.dir / "checksumlist.csig", "2019-09-11")

    def test_multiple_files_csig(self):
        files = {"a.txt": b"a\n", "b.txt": b"b\n", "c.txt": b"c\n", "d.txt": b"d\n"}
        csig = make_csig(self.root, self.intermediate, "2019-09-30", checksum_list(files))
        write_files(self.dir, {"a.txt": b"a\n", "c.txt": b"c\n", "d.txt": b"not d\n"})

        listed = self.verifier.verify_csig_message(csig, datetime(2019, 9, 20, tzinfo=timezone.utc))
        checksums = ChecksumList(listed, True)

        self.assertEqual(checksums[0].filename, "a.txt")
        self.assertEqual(len(checksums), 4)

        failed = FailedChecksumFilter(checksums, self.dir)
        self.assertEqual([c.filename for c in failed], ["b.txt", "d.txt"])
        self.assertEqual(len(failed), 2)


if __name__ == "__main__":
    unittest.main()
