"""
Artifact Signer Module

Build-pipeline side of artifact trust: produces the detached signatures and
signed build manifests that node agents verify before launching an artifact.

For an artifact published at ``<base>`` the signer produces:

    <base>.manifest       YAML document, ``artifact_sha: <hex sha256>``
    <base>.manifest.sig   detached signature over the manifest bytes
    <base>.sig            detached signature over the artifact bytes
"""

import hashlib
from pathlib import Path
from typing import Dict, Any, Optional

import yaml
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from . import armor
from .key_manager import KeyManager, PrivateKey

MANIFEST_DIGEST_KEY = 'artifact_sha'

SUPPORTED_ALGORITHMS = {
    RSAPrivateKey: ('RSA-PSS', 'RSA-PKCS1v15'),
    EllipticCurvePrivateKey: ('ECDSA',),
    Ed25519PrivateKey: ('Ed25519',),
}

DEFAULT_ALGORITHMS = {
    RSAPrivateKey: 'RSA-PSS',
    EllipticCurvePrivateKey: 'ECDSA',
    Ed25519PrivateKey: 'Ed25519',
}


class ArtifactSigner:
    """Signs build artifacts and their manifests with a private key."""

    def __init__(self,
                 private_key_path: Optional[str] = None,
                 private_key: Optional[PrivateKey] = None,
                 algorithm: Optional[str] = None,
                 password: Optional[bytes] = None,
                 armor_headers: Optional[Dict[str, str]] = None):
        """
        Initialize the artifact signer.

        Args:
            private_key_path: Path to private key file (PEM format)
            private_key: Pre-loaded private key object
            algorithm: Signing algorithm ('RSA-PSS', 'RSA-PKCS1v15', 'ECDSA',
                'Ed25519'); defaults to the natural choice for the key type
            password: Optional password for an encrypted key file
            armor_headers: Headers written into armored signatures
        """
        self.key_manager = KeyManager()

        if private_key is not None:
            self.private_key = private_key
        elif private_key_path is not None:
            self.private_key = self.key_manager.load_private_key(private_key_path, password)
        else:
            raise ValueError("Either private_key_path or private_key must be provided")

        self.algorithm = algorithm or self._default_algorithm()
        self.armor_headers = armor_headers if armor_headers is not None else {'Version': 'artifact-trust'}

        self._validate_algorithm_compatibility()

    def _key_type(self):
        for key_type in SUPPORTED_ALGORITHMS:
            if isinstance(self.private_key, key_type):
                return key_type
        raise ValueError(f"Unsupported key type: {type(self.private_key)}")

    def _default_algorithm(self) -> str:
        return DEFAULT_ALGORITHMS[self._key_type()]

    def _validate_algorithm_compatibility(self):
        """Validate that the algorithm is compatible with the key type."""
        key_type = self._key_type()
        if self.algorithm not in SUPPORTED_ALGORITHMS[key_type]:
            raise ValueError(f"Algorithm {self.algorithm} not compatible with {key_type.__name__}")

    def sign_bytes(self, data: bytes) -> bytes:
        """Produce a raw detached signature over data."""
        if self.algorithm == 'RSA-PSS':
            return self.private_key.sign(
                data,
                padding.PSS(
                    mgf=padding.MGF1(hashes.SHA256()),
                    salt_length=padding.PSS.MAX_LENGTH
                ),
                hashes.SHA256()
            )
        if self.algorithm == 'RSA-PKCS1v15':
            return self.private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
        if self.algorithm == 'ECDSA':
            return self.private_key.sign(data, ec.ECDSA(hashes.SHA256()))
        if self.algorithm == 'Ed25519':
            return self.private_key.sign(data)
        raise ValueError(f"Unsupported algorithm: {self.algorithm}")

    def sign_bytes_armored(self, data: bytes) -> bytes:
        """Produce an ASCII-armored detached signature over data."""
        return armor.encode(self.sign_bytes(data), headers=self.armor_headers)

    @staticmethod
    def create_manifest(artifact_bytes: bytes) -> bytes:
        """Build the YAML trust document declaring the artifact's SHA-256."""
        digest = hashlib.sha256(artifact_bytes).hexdigest()
        return yaml.safe_dump({MANIFEST_DIGEST_KEY: digest}, default_flow_style=False).encode('utf-8')

    def publish(self, artifact_path: str, armored: bool = False) -> Dict[str, str]:
        """
        Write the manifest, manifest signature and artifact signature next
        to an artifact.

        Args:
            artifact_path: Path to the built artifact
            armored: Write ASCII-armored signatures instead of raw ones

        Returns:
            Dictionary mapping companion kind to the written file path
        """
        artifact = Path(artifact_path)
        if not artifact.exists():
            raise FileNotFoundError(f"Artifact not found: {artifact_path}")

        sign = self.sign_bytes_armored if armored else self.sign_bytes

        artifact_bytes = artifact.read_bytes()
        manifest_bytes = self.create_manifest(artifact_bytes)

        written = {
            'manifest': f"{artifact}.manifest",
            'manifest_signature': f"{artifact}.manifest.sig",
            'signature': f"{artifact}.sig",
        }
        Path(written['manifest']).write_bytes(manifest_bytes)
        Path(written['manifest_signature']).write_bytes(sign(manifest_bytes))
        Path(written['signature']).write_bytes(sign(artifact_bytes))
        return written

    def get_signer_identity(self) -> Dict[str, Any]:
        """Get information about the signer and signing setup."""
        identity = self.key_manager.get_key_info(self.private_key)
        identity['signing_algorithm'] = self.algorithm
        return identity

    def public_key(self):
        return self.private_key.public_key()
