"""
Artifact Trust - Signing Module

This module provides the cryptographic building blocks of artifact trust:
trusted keyrings, detached signature checks, ASCII armor and the
build-pipeline signer that publishes manifests and signatures.
"""

from .artifact_signer import ArtifactSigner
from .key_manager import KeyManager, Keyring, KeyringError
from .signature_verifier import SignatureError, check_detached_signature

__all__ = [
    'ArtifactSigner',
    'KeyManager',
    'Keyring',
    'KeyringError',
    'SignatureError',
    'check_detached_signature',
]
