"""
Signed Payload Checking

Confirms a payload was signed by a trusted key, accepting the detached
signature either raw or ASCII-armored.
"""

from typing import Optional

from signing import armor
from signing.key_manager import Keyring, PublicKey
from signing.signature_verifier import SignatureError, check_detached_signature

from .errors import SignatureInvalid


def verify_signed(keyring: Keyring,
                  signed_bytes: bytes,
                  signature_bytes: bytes,
                  url: Optional[str] = None,
                  stage: Optional[str] = None) -> PublicKey:
    """
    Verify a detached signature over signed_bytes.

    Returns:
        The trusted key that made the signature

    Raises:
        SignatureInvalid: for any armor or signature failure; the cause is chained
    """
    # permit an armored detached signature
    try:
        body = armor.decode_if_armored(signature_bytes)
    except armor.ArmorError as e:
        raise SignatureInvalid(f"Discovered an armored signature but could not read the body: {e}",
                               url=url, stage=stage) from e
    if body is not None:
        signature_bytes = body

    try:
        return check_detached_signature(keyring, signed_bytes, signature_bytes)
    except SignatureError as e:
        raise SignatureInvalid(f"Could not verify data against the signature: {e}",
                               url=url, stage=stage) from e
