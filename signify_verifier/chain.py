"""
Signify Chained Signatures (.csig)

A chained signature lets a long-lived root key endorse a short-lived
intermediate key until a validity date. The file is six newline-separated
parts:

    untrusted comment: <root comment>            [0]  root signature block
    <base64 root signature>                       [1]
    2019-09-10                                    [2]  valid-through date
    untrusted comment: <intermediate comment>     [3]  intermediate public key
    <base64 intermediate public key>              [4]
    <signify signature + message made with the
     intermediate key>                            [5]

The root signature covers parts [2..4] as one unit, so the date and the
intermediate key cannot be taken from different endorsements.
"""

from dataclasses import dataclass
from typing import Union

from .errors import MalformedFormatError
from .util import ensure_bytes

CSIG_PARTS = 6


@dataclass(frozen=True)
class ChainLink:
    """The six parts of a chained signature."""
    root_comment: bytes
    root_signature: bytes
    valid_through: bytes
    intermediate_comment: bytes
    intermediate_key: bytes
    signed_message: bytes

    @classmethod
    def parse(cls, chained_signed_message: Union[bytes, str]) -> 'ChainLink':
        """
        Split a chained signature into its parts.

        The last part keeps its internal newlines.
        """
        parts = ensure_bytes(chained_signed_message).split(b"\n", CSIG_PARTS - 1)
        if len(parts) != CSIG_PARTS:
            raise MalformedFormatError(
                f"Invalid chained signature format; expected {CSIG_PARTS} parts, found {len(parts)}",
                {"parts": len(parts)}
            )
        return cls(*parts)

    def root_signed_payload(self) -> bytes:
        """Root signature block followed by the date and intermediate key it signs."""
        return b"\n".join([
            self.root_comment,
            self.root_signature,
            self.valid_through,
            self.intermediate_comment,
            self.intermediate_key,
        ]) + b"\n"

    def intermediate_public_key(self) -> bytes:
        return self.intermediate_comment + b"\n" + self.intermediate_key + b"\n"

    def delegated_signed_message(self) -> bytes:
        return self.signed_message
