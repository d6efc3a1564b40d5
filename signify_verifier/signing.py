"""
Signify Cryptographic Verification

Uses Ed25519 (RFC 8032) detached signatures, as produced by signify.
Verification only: keys and signatures are generated elsewhere.
"""

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .encoding import PUBLIC_KEY_BYTES, SIGNATURE_BYTES


def verify_signature(data: bytes, signature: bytes, verify_key: bytes) -> bool:
    """
    Verify an Ed25519 detached signature.

    Args:
        data: The signed message
        signature: 64-byte signature
        verify_key: 32-byte public key

    Returns:
        True if signature is valid, False otherwise
    """
    if len(signature) != SIGNATURE_BYTES or len(verify_key) != PUBLIC_KEY_BYTES:
        return False

    try:
        key = VerifyKey(verify_key)
        key.verify(data, signature)
        return True
    except BadSignatureError:
        return False
