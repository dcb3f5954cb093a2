"""
Command line entry point for verifying a downloaded artifact.

    verify-artifact ./myapp_abc123.tar.gz https://foo.bar.baz/artifacts/myapp_abc123.tar.gz

Exit codes: 0 verified, 1 verification failed, 2 configuration or
environment error.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import VerifierConfig
from .artifact_verifier import VERIFICATION_MODES
from .errors import ArtifactVerificationError, KeyringLoadError

EXIT_OK = 0
EXIT_UNVERIFIED = 1
EXIT_ERROR = 2

logger = logging.getLogger("verify-artifact")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="verify-artifact",
                                description="Verify a downloaded artifact against its signed trust metadata")
    p.add_argument("local_file", help="Path to the downloaded artifact")
    p.add_argument("artifact_url", help="Canonical remote URL the artifact was downloaded from")
    p.add_argument("--mode", choices=VERIFICATION_MODES,
                   help="Verification strategy (default: $ARTIFACT_VERIFICATION_MODE or 'either')")
    p.add_argument("--keyring", help="Trusted keyring file or directory (default: $ARTIFACT_KEYRING_PATH)")
    p.add_argument("--timeout", type=float, help="Fetch timeout in seconds (default: $ARTIFACT_FETCH_TIMEOUT or 30)")
    p.add_argument("--json", action="store_true", help="Print the outcome as JSON")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def _config_from_args(ns: argparse.Namespace) -> VerifierConfig:
    return VerifierConfig.from_env(mode=ns.mode, keyring_path=ns.keyring, fetch_timeout=ns.timeout)


def _report(ns: argparse.Namespace, verified: bool, error: Optional[ArtifactVerificationError] = None) -> None:
    if ns.json:
        outcome = {'artifact_url': ns.artifact_url, 'verified': verified}
        if error is not None:
            outcome['failure'] = error.to_dict()
        print(json.dumps(outcome, indent=2))
    elif verified:
        print(f"OK {ns.artifact_url}")
    else:
        print(f"FAIL {ns.artifact_url}: {error}")


def main(argv: Optional[List[str]] = None) -> int:
    ns = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config_from_args(ns)
        verifier = config.build_verifier()
    except (ValueError, KeyringLoadError) as e:
        logger.error("Could not set up artifact verification: %s", e)
        return EXIT_ERROR

    try:
        with open(ns.local_file, 'rb') as local_copy:
            verifier.verify_hoist_artifact(local_copy, ns.artifact_url)
    except ArtifactVerificationError as e:
        _report(ns, False, e)
        return EXIT_UNVERIFIED
    except OSError as e:
        logger.error("Could not verify %s: %s", ns.local_file, e)
        return EXIT_ERROR

    _report(ns, True)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
