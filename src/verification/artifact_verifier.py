"""
Artifact Verifier Module

Verification strategies that prove a downloaded artifact was produced by a
trusted build pipeline before it is unpacked and launched.

All strategies implement ArtifactVerifier.verify_hoist_artifact(), which
returns None on success and raises an ArtifactVerificationError subclass
on failure, so callers never branch on which strategy is configured.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional, Union

from fetching import ArtifactLocation, Fetcher, URIFetcher
from signing.key_manager import KeyManager, Keyring, KeyringError

from .digest import check_matching_digest
from .errors import (
    ArtifactReadError,
    ArtifactVerificationError,
    FetchFailure,
    KeyringLoadError,
    LocalCopyReadError,
    StreamRewindError,
    UnsupportedScheme,
)
from .signed_payload import verify_signed

VERIFY_NONE = 'none'
VERIFY_MANIFEST = 'manifest'
VERIFY_BUILD = 'build'
VERIFY_EITHER = 'either'

VERIFICATION_MODES = (VERIFY_NONE, VERIFY_MANIFEST, VERIFY_BUILD, VERIFY_EITHER)

TEMP_DIR_PREFIX = 'artifact_verification'

Location = Union[str, ArtifactLocation]


class ArtifactVerifier(ABC):
    """Checks that an artifact was created by a trusted entity."""

    @abstractmethod
    def verify_hoist_artifact(self, local_copy: BinaryIO, artifact_location: Location) -> None:
        """
        Verify the local copy of the artifact downloaded from artifact_location.

        Args:
            local_copy: Seekable binary stream positioned at the artifact start.
                It is read but never closed or modified.
            artifact_location: Canonical remote URL of the artifact

        Raises:
            ArtifactVerificationError: if the artifact is not trusted
            LocalCopyReadError: if local_copy cannot be read
        """
        pass


class NopVerifier(ArtifactVerifier):
    """Accepts every artifact; used when verification is disabled."""

    def verify_hoist_artifact(self, local_copy: BinaryIO, artifact_location: Location) -> None:
        return None


def load_verification_keyring(keyring_path: str) -> Keyring:
    try:
        return KeyManager().load_keyring(keyring_path)
    except KeyringError as e:
        raise KeyringLoadError(
            f"Could not load artifact verification keyring from {keyring_path}: {e}") from e


def _fetch_companion(fetcher: Fetcher,
                     source: ArtifactLocation,
                     destination: str,
                     artifact_location: ArtifactLocation,
                     stage: str,
                     log: logging.Logger) -> bytes:
    """Fetch a trust companion into the scoped work area and return its bytes."""
    log.debug("Fetching %s for %s", stage, artifact_location)
    try:
        fetcher.copy_local(source, destination)
    except Exception as e:
        raise FetchFailure(f"Could not download {stage} for {artifact_location} from {source}: {e}",
                           url=str(source), stage=stage) from e

    try:
        with open(destination, 'rb') as f:
            return f.read()
    except OSError as e:
        raise ArtifactReadError(f"Could not read downloaded {stage} at {destination}: {e}",
                                url=str(source), stage=stage) from e


class BuildManifestVerifier(ArtifactVerifier):
    """
    Ensures the artifact is matched with a signed build manifest certifying
    the validity of the build.

    The manifest is a YAML file with a single key, ``artifact_sha``, holding
    the hex digest of the artifact. The manifest is signed by the build
    system. If the artifact is located here:

        https://foo.bar.baz/artifacts/myapp_abc123.tar.gz

    its build manifest and the manifest signature are located here:

        https://foo.bar.baz/artifacts/myapp_abc123.tar.gz.manifest
        https://foo.bar.baz/artifacts/myapp_abc123.tar.gz.manifest.sig
    """

    def __init__(self,
                 keyring_path: str,
                 fetcher: Optional[Fetcher] = None,
                 logger: Optional[logging.Logger] = None):
        self.keyring = load_verification_keyring(keyring_path)
        self.fetcher = fetcher or URIFetcher()
        self.logger = logger or logging.getLogger(__name__)

    def verify_hoist_artifact(self, local_copy: BinaryIO, artifact_location: Location) -> None:
        location = ArtifactLocation(artifact_location)
        if not location.is_supported:
            raise UnsupportedScheme(
                f"{location} does not have a recognized scheme '{location.scheme}', "
                f"cannot verify manifest or signature",
                url=str(location), stage='scheme')

        manifest_src = location.manifest_location()
        signature_src = location.manifest_signature_location()

        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX) as work_dir:
            manifest_bytes = _fetch_companion(
                self.fetcher, manifest_src, os.path.join(work_dir, 'manifest'),
                location, 'manifest', self.logger)
            signature_bytes = _fetch_companion(
                self.fetcher, signature_src, os.path.join(work_dir, 'signature'),
                location, 'manifest signature', self.logger)

        signer = verify_signed(self.keyring, manifest_bytes, signature_bytes,
                               url=str(manifest_src), stage='manifest signature')

        check_matching_digest(local_copy, manifest_bytes, url=str(location))

        self.logger.debug("Verified %s against build manifest signed by key %s",
                          location, KeyManager.fingerprint(signer))


class BuildVerifier(ArtifactVerifier):
    """
    Ensures the artifact has a detached signature over its own bytes. A
    simpler version of the BuildManifestVerifier. If the artifact is
    located here:

        https://foo.bar.baz/artifacts/myapp_abc123.tar.gz

    its signature is located here:

        https://foo.bar.baz/artifacts/myapp_abc123.tar.gz.sig
    """

    def __init__(self,
                 keyring_path: str,
                 fetcher: Optional[Fetcher] = None,
                 logger: Optional[logging.Logger] = None):
        self.keyring = load_verification_keyring(keyring_path)
        self.fetcher = fetcher or URIFetcher()
        self.logger = logger or logging.getLogger(__name__)

    def verify_hoist_artifact(self, local_copy: BinaryIO, artifact_location: Location) -> None:
        location = ArtifactLocation(artifact_location)
        if not location.is_supported:
            raise UnsupportedScheme(
                f"{location} does not have a recognized scheme '{location.scheme}', cannot verify signature",
                url=str(location), stage='scheme')

        signature_src = location.signature_location()

        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX) as work_dir:
            signature_bytes = _fetch_companion(
                self.fetcher, signature_src, os.path.join(work_dir, 'sig'),
                location, 'signature', self.logger)

        try:
            signed_bytes = local_copy.read()
        except (OSError, ValueError) as e:
            raise LocalCopyReadError(f"Could not read the artifact into memory: {e}",
                                     url=str(location), stage='signature') from e

        signer = verify_signed(self.keyring, signed_bytes, signature_bytes,
                               url=str(signature_src), stage='signature')

        self.logger.debug("Verified %s against build signature from key %s",
                          location, KeyManager.fingerprint(signer))


class CompositeVerifier(ArtifactVerifier):
    """
    Runs the BuildManifestVerifier and falls back to the BuildVerifier.
    Only one of the two needs to pass for verification to pass.

    Only trust failures trigger the fallback. A LocalCopyReadError from the
    manifest strategy propagates unchanged since the build strategy would
    read the same stream.
    """

    def __init__(self,
                 keyring_path: Optional[str] = None,
                 fetcher: Optional[Fetcher] = None,
                 logger: Optional[logging.Logger] = None,
                 manifest_verifier: Optional[ArtifactVerifier] = None,
                 build_verifier: Optional[ArtifactVerifier] = None):
        """
        Initialize the composite verifier.

        Args:
            keyring_path: Keyring for the inner verifiers built here
            fetcher: Fetcher shared by the inner verifiers built here
            logger: Logger for fallback and rewind diagnostics
            manifest_verifier: Pre-built manifest strategy
            build_verifier: Pre-built build signature strategy
        """
        if (manifest_verifier is None or build_verifier is None) and keyring_path is None:
            raise ValueError("Either keyring_path or both inner verifiers must be provided")

        self.logger = logger or logging.getLogger(__name__)
        if manifest_verifier is None or build_verifier is None:
            fetcher = fetcher or URIFetcher()
        self.manifest_verifier = manifest_verifier or BuildManifestVerifier(keyring_path, fetcher, logger)
        self.build_verifier = build_verifier or BuildVerifier(keyring_path, fetcher, logger)

    def verify_hoist_artifact(self, local_copy: BinaryIO, artifact_location: Location) -> None:
        try:
            self.manifest_verifier.verify_hoist_artifact(local_copy, artifact_location)
            return None
        except ArtifactVerificationError as e:
            manifest_error = e

        self.logger.warning("Manifest verification of %s failed, falling back to build signature: %s",
                            artifact_location, manifest_error)

        # The manifest strategy may have consumed the stream computing its digest
        self._rewind(local_copy)

        try:
            self.build_verifier.verify_hoist_artifact(local_copy, artifact_location)
        except ArtifactVerificationError as build_error:
            build_error.previous_error = manifest_error
            raise

    def _rewind(self, local_copy: BinaryIO) -> None:
        name = getattr(local_copy, 'name', repr(local_copy))
        try:
            local_copy.seek(0, os.SEEK_SET)
        except (OSError, ValueError, AttributeError) as e:
            self.logger.error("Could not rewind local copy %s: %s", name, e)
            raise StreamRewindError(
                f"Could not rewind localCopy {name} back to start of file: {e}") from e


def create_verifier(mode: str,
                    keyring_path: Optional[str] = None,
                    fetcher: Optional[Fetcher] = None,
                    logger: Optional[logging.Logger] = None) -> ArtifactVerifier:
    """
    Build the verifier for a verification mode.

    Args:
        mode: One of 'none', 'manifest', 'build' or 'either'
        keyring_path: Trusted keyring; required unless mode is 'none'
        fetcher: Fetcher for trust companions (defaults to URIFetcher)
        logger: Logger handed to the verifiers

    Returns:
        ArtifactVerifier for the mode

    Raises:
        ValueError: for an unknown mode or a missing keyring path
        KeyringLoadError: if the keyring cannot be loaded
    """
    if mode not in VERIFICATION_MODES:
        raise ValueError(f"Unknown verification mode '{mode}', expected one of {', '.join(VERIFICATION_MODES)}")

    if mode == VERIFY_NONE:
        return NopVerifier()

    if not keyring_path:
        raise ValueError(f"Verification mode '{mode}' requires a keyring path")

    fetcher = fetcher or URIFetcher()
    if mode == VERIFY_MANIFEST:
        return BuildManifestVerifier(keyring_path, fetcher, logger)
    if mode == VERIFY_BUILD:
        return BuildVerifier(keyring_path, fetcher, logger)
    return CompositeVerifier(keyring_path, fetcher, logger)
