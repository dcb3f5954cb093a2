"""
Artifact Trust - Verification Module

This module provides the artifact verification strategies a node agent runs
before launching a downloaded artifact: signed build manifests, direct build
signatures, their fallback composition and a no-op strategy.
"""

from .artifact_verifier import (
    ArtifactVerifier,
    BuildManifestVerifier,
    BuildVerifier,
    CompositeVerifier,
    NopVerifier,
    VERIFICATION_MODES,
    VERIFY_BUILD,
    VERIFY_EITHER,
    VERIFY_MANIFEST,
    VERIFY_NONE,
    create_verifier,
)
from .config import VerifierConfig
from .digest import TrustDocument, check_matching_digest
from .errors import (
    ArtifactReadError,
    ArtifactVerificationError,
    DigestMismatch,
    FetchFailure,
    KeyringLoadError,
    LocalCopyReadError,
    ParseError,
    SignatureInvalid,
    StreamRewindError,
    UnsupportedScheme,
)
from .signed_payload import verify_signed

__all__ = [
    'ArtifactVerifier',
    'BuildManifestVerifier',
    'BuildVerifier',
    'CompositeVerifier',
    'NopVerifier',
    'VERIFICATION_MODES',
    'VERIFY_BUILD',
    'VERIFY_EITHER',
    'VERIFY_MANIFEST',
    'VERIFY_NONE',
    'create_verifier',
    'VerifierConfig',
    'TrustDocument',
    'check_matching_digest',
    'ArtifactReadError',
    'ArtifactVerificationError',
    'DigestMismatch',
    'FetchFailure',
    'KeyringLoadError',
    'LocalCopyReadError',
    'ParseError',
    'SignatureInvalid',
    'StreamRewindError',
    'UnsupportedScheme',
    'verify_signed',
]
