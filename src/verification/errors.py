"""
Verification Errors

Typed failures raised by the artifact verifiers. Every per-call trust
failure derives from ArtifactVerificationError. KeyringLoadError,
LocalCopyReadError and StreamRewindError sit outside that hierarchy: they
signal configuration and environment problems, not untrusted artifacts.
"""

from typing import Any, Dict, Optional


class ArtifactVerificationError(Exception):
    """An artifact could not be proven to come from a trusted build."""

    def __init__(self, message: str, url: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.stage = stage
        # Set by CompositeVerifier to the manifest failure it fell back from
        self.previous_error: Optional['ArtifactVerificationError'] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the failure to dictionary format for reports and logs."""
        result = {
            'error': type(self).__name__,
            'message': self.message,
            'url': self.url,
            'stage': self.stage,
        }
        if self.previous_error is not None:
            result['previous_error'] = self.previous_error.to_dict()
        return result


class UnsupportedScheme(ArtifactVerificationError):
    """The artifact location uses a scheme verification does not recognize."""


class FetchFailure(ArtifactVerificationError):
    """A trust companion (manifest or signature) could not be fetched."""


class SignatureInvalid(ArtifactVerificationError):
    """A detached signature did not verify against the trusted keyring."""


class ParseError(ArtifactVerificationError):
    """The build manifest could not be parsed into a trust document."""


class DigestMismatch(ArtifactVerificationError):
    """The artifact's digest differs from the one its manifest declares."""

    def __init__(self, message: str, expected: str, actual: str,
                 url: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message, url=url, stage=stage)
        self.expected = expected
        self.actual = actual


class ArtifactReadError(ArtifactVerificationError):
    """A downloaded trust companion could not be read back from the work area."""


class KeyringLoadError(Exception):
    """The trusted keyring could not be loaded; no verifier is created."""


class StreamRewindError(IOError):
    """The local artifact stream could not be rewound between strategies."""


class LocalCopyReadError(IOError):
    """The caller's local copy of the artifact could not be read."""

    def __init__(self, message: str, url: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.stage = stage
