"""
Signature Verifier Module

Checks raw detached signatures against a keyring of trusted public keys.
This is the cryptographic primitive underneath artifact verification; it
knows nothing about armor, manifests or artifact locations.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePublicKey
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.exceptions import InvalidSignature

from .key_manager import Keyring, PublicKey


class SignatureError(Exception):
    """Raised when a detached signature does not verify against a keyring."""


def _rsa_paddings():
    # Verification accepts any PSS salt length the signer may have picked
    return (
        padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.AUTO),
        padding.PKCS1v15(),
    )


def _verify_with_key(public_key: PublicKey, data: bytes, signature: bytes) -> bool:
    """
    Verify a signature with a single public key.

    Args:
        public_key: Trusted public key
        data: Original data that was signed
        signature: Raw signature bytes

    Returns:
        True if the signature was made by this key over this data
    """
    if isinstance(public_key, RSAPublicKey):
        for rsa_padding in _rsa_paddings():
            try:
                public_key.verify(signature, data, rsa_padding, hashes.SHA256())
                return True
            except (InvalidSignature, ValueError):
                continue
        return False

    try:
        if isinstance(public_key, EllipticCurvePublicKey):
            public_key.verify(signature, data, ec.ECDSA(hashes.SHA256()))
        elif isinstance(public_key, Ed25519PublicKey):
            public_key.verify(signature, data)
        else:
            return False
    except (InvalidSignature, ValueError):
        return False
    return True


def check_detached_signature(keyring: Keyring, signed: bytes, signature: bytes) -> PublicKey:
    """
    Check a raw detached signature against every key in the keyring.

    Args:
        keyring: Trusted public keys
        signed: Bytes covered by the signature
        signature: Raw (unarmored) signature bytes

    Returns:
        The public key that made the signature

    Raises:
        SignatureError: if no key in the keyring made the signature
    """
    if not signature:
        raise SignatureError("signature is empty")
    if len(keyring) == 0:
        raise SignatureError("keyring holds no trusted keys")

    for public_key in keyring:
        if _verify_with_key(public_key, signed, signature):
            return public_key

    raise SignatureError(
        f"signature was not made over this data by any of the {len(keyring)} trusted keys")
