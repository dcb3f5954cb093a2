"""
Digest Matching Module

Computes the SHA-256 digest of a local artifact and compares it with the
digest declared by a build manifest (trust document).
"""

import hashlib
from typing import BinaryIO, Optional

import yaml

from .errors import DigestMismatch, LocalCopyReadError, ParseError

ARTIFACT_DIGEST_KEY = 'artifact_sha'
CHUNK_SIZE = 8192

# Plain scalars YAML reads as null; the loader keeps them as strings
YAML_NULLS = ('', '~', 'null', 'Null', 'NULL')


class TrustDocument:
    """Parsed build manifest declaring an artifact's expected digest."""

    def __init__(self, artifact_sha: str):
        self.artifact_sha = artifact_sha

    @classmethod
    def from_bytes(cls, data: bytes, url: Optional[str] = None) -> 'TrustDocument':
        """
        Parse manifest bytes.

        Scalars are read as plain strings so that digests made only of
        digits are never reinterpreted as numbers. Keys other than
        ``artifact_sha`` are ignored.

        Raises:
            ParseError: if the bytes are not a YAML mapping with a
                non-empty, non-null ``artifact_sha`` string
        """
        try:
            document = yaml.load(data, Loader=yaml.BaseLoader)
        except yaml.YAMLError as e:
            raise ParseError(f"Could not unmarshal manifest bytes: {e}", url=url, stage='manifest') from e

        if not isinstance(document, dict):
            raise ParseError("Manifest is not a mapping", url=url, stage='manifest')

        artifact_sha = document.get(ARTIFACT_DIGEST_KEY)
        if not isinstance(artifact_sha, str) or artifact_sha in YAML_NULLS:
            raise ParseError(f"Manifest does not declare a usable '{ARTIFACT_DIGEST_KEY}'",
                             url=url, stage='manifest')

        return cls(artifact_sha)

    def to_dict(self):
        return {ARTIFACT_DIGEST_KEY: self.artifact_sha}


def calculate_digest(stream: BinaryIO, url: Optional[str] = None) -> str:
    """Consume a binary stream and return its lowercase hex SHA-256."""
    hasher = hashlib.sha256()
    try:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    except (OSError, ValueError) as e:
        raise LocalCopyReadError(f"Could not read given local copy of the artifact: {e}",
                                 url=url, stage='digest') from e
    return hasher.hexdigest()


def check_matching_digest(local_copy: BinaryIO, manifest_bytes: bytes, url: Optional[str] = None) -> None:
    """
    Check that the local artifact hashes to the digest its manifest declares.

    Args:
        local_copy: Readable binary stream positioned at the artifact start
        manifest_bytes: Raw manifest document
        url: Artifact location, for error context

    Raises:
        LocalCopyReadError: if the stream cannot be read
        ParseError: if the manifest is unusable
        DigestMismatch: if the digests differ
    """
    real_digest = calculate_digest(local_copy, url=url)
    document = TrustDocument.from_bytes(manifest_bytes, url=url)

    if real_digest != document.artifact_sha:
        raise DigestMismatch(
            f"Artifact hex digest did not match the given manifest: "
            f"expected {document.artifact_sha}, was actually {real_digest}",
            expected=document.artifact_sha,
            actual=real_digest,
            url=url,
            stage='digest',
        )
