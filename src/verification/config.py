"""
Verifier Configuration

Reads artifact verification settings from the environment.
"""

import os
import logging
from typing import Any, Dict, Optional

from fetching import Fetcher, URIFetcher
from fetching.fetcher import DEFAULT_TIMEOUT

from .artifact_verifier import VERIFY_EITHER, VERIFICATION_MODES, ArtifactVerifier, create_verifier

MODE_ENV = "ARTIFACT_VERIFICATION_MODE"
KEYRING_ENV = "ARTIFACT_KEYRING_PATH"
TIMEOUT_ENV = "ARTIFACT_FETCH_TIMEOUT"


class VerifierConfig:
    """Settings selecting and building the artifact verifier."""

    def __init__(self,
                 mode: str = VERIFY_EITHER,
                 keyring_path: Optional[str] = None,
                 fetch_timeout: float = DEFAULT_TIMEOUT):
        if mode not in VERIFICATION_MODES:
            raise ValueError(f"Unknown verification mode '{mode}', expected one of {', '.join(VERIFICATION_MODES)}")
        if fetch_timeout <= 0:
            raise ValueError("Fetch timeout must be positive")

        self.mode = mode
        self.keyring_path = keyring_path
        self.fetch_timeout = fetch_timeout

    @classmethod
    def from_env(cls,
                 environ: Optional[Dict[str, str]] = None,
                 mode: Optional[str] = None,
                 keyring_path: Optional[str] = None,
                 fetch_timeout: Optional[float] = None) -> 'VerifierConfig':
        """
        Build the configuration from environment variables.

        Explicit arguments take precedence over the environment. An
        environment variable is only read, and so only validated, when its
        setting is not given explicitly.
        """
        environ = os.environ if environ is None else environ

        if mode is None:
            mode = environ.get(MODE_ENV, VERIFY_EITHER).strip().lower()
        if keyring_path is None:
            keyring_path = environ.get(KEYRING_ENV) or None
        if fetch_timeout is None:
            timeout_value = environ.get(TIMEOUT_ENV, str(DEFAULT_TIMEOUT))
            try:
                fetch_timeout = float(timeout_value)
            except ValueError as e:
                raise ValueError(f"{TIMEOUT_ENV} must be a number of seconds, got {timeout_value!r}") from e

        return cls(mode=mode, keyring_path=keyring_path, fetch_timeout=fetch_timeout)

    def build_fetcher(self) -> Fetcher:
        return URIFetcher(timeout=self.fetch_timeout)

    def build_verifier(self,
                       fetcher: Optional[Fetcher] = None,
                       logger: Optional[logging.Logger] = None) -> ArtifactVerifier:
        return create_verifier(self.mode, self.keyring_path, fetcher or self.build_fetcher(), logger)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode,
            'keyring_path': self.keyring_path,
            'fetch_timeout': self.fetch_timeout,
        }
