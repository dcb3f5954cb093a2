"""
Key Manager Module

Manages the cryptographic keys used to sign and verify build artifacts.
Supports RSA, ECDSA and Ed25519 key generation, loading and saving, and
loading the keyring of trusted public keys used by the artifact verifiers.
"""

import os
import re
import base64
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from cryptography.hazmat.primitives import serialization, hashes
from cryptography.hazmat.primitives.asymmetric import rsa, ec, ed25519
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

PrivateKey = Union[RSAPrivateKey, EllipticCurvePrivateKey, Ed25519PrivateKey]
PublicKey = Union[RSAPublicKey, EllipticCurvePublicKey, Ed25519PublicKey]

# SubjectPublicKeyInfo blocks, plus PKCS#1 blocks for RSA keys
PEM_PUBLIC_KEY_BEGIN = re.compile(rb"-----BEGIN ((?:RSA )?PUBLIC KEY)-----")

# File suffixes picked up when a keyring path is a directory
KEYRING_FILE_SUFFIXES = ('.pem', '.pub')


class KeyringError(Exception):
    """Raised when a keyring cannot be loaded."""


class Keyring:
    """An immutable set of trusted public signing keys."""

    __slots__ = ('_keys', '_source')

    def __init__(self, keys, source: Optional[str] = None):
        keys = tuple(keys)
        for key in keys:
            if not isinstance(key, (RSAPublicKey, EllipticCurvePublicKey, Ed25519PublicKey)):
                raise TypeError(f"Unsupported public key type in keyring: {type(key).__name__}")
        object.__setattr__(self, '_keys', keys)
        object.__setattr__(self, '_source', source)

    def __setattr__(self, name, value):
        raise AttributeError("Keyring is immutable")

    @property
    def keys(self) -> Tuple[PublicKey, ...]:
        return self._keys

    @property
    def source(self) -> Optional[str]:
        """Path the keyring was loaded from, if any."""
        return self._source

    def __iter__(self) -> Iterator[PublicKey]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def fingerprints(self) -> List[str]:
        return [KeyManager.fingerprint(key) for key in self._keys]

    def __repr__(self) -> str:
        return f"Keyring(keys={len(self._keys)}, source={self._source!r})"


class KeyManager:
    """Manages cryptographic keys for the signing and verification system."""

    def generate_rsa_key_pair(self,
                              key_size: int = 2048,
                              public_exponent: int = 65537) -> Tuple[RSAPrivateKey, RSAPublicKey]:
        """
        Generate an RSA key pair.

        Args:
            key_size: Key size in bits (default: 2048)
            public_exponent: Public exponent (default: 65537)

        Returns:
            Tuple of (private_key, public_key)
        """
        if key_size < 2048:
            raise ValueError("RSA key size must be at least 2048 bits")

        private_key = rsa.generate_private_key(
            public_exponent=public_exponent,
            key_size=key_size,
        )
        return private_key, private_key.public_key()

    def generate_ecdsa_key_pair(self,
                                curve_name: str = 'secp256r1') -> Tuple[EllipticCurvePrivateKey, EllipticCurvePublicKey]:
        """
        Generate an ECDSA key pair.

        Args:
            curve_name: Name of the elliptic curve (default: secp256r1)

        Returns:
            Tuple of (private_key, public_key)
        """
        curve_map = {
            'secp256r1': ec.SECP256R1(),
            'secp384r1': ec.SECP384R1(),
            'secp521r1': ec.SECP521R1(),
        }

        if curve_name not in curve_map:
            raise ValueError(f"Unsupported curve: {curve_name}. Supported curves: {list(curve_map.keys())}")

        private_key = ec.generate_private_key(curve_map[curve_name])
        return private_key, private_key.public_key()

    def generate_ed25519_key_pair(self) -> Tuple[Ed25519PrivateKey, Ed25519PublicKey]:
        """Generate an Ed25519 key pair."""
        private_key = ed25519.Ed25519PrivateKey.generate()
        return private_key, private_key.public_key()

    def save_private_key(self,
                         private_key: PrivateKey,
                         file_path: str,
                         password: Optional[bytes] = None) -> None:
        """
        Save a private key to a PEM file readable only by its owner.

        Args:
            private_key: Private key to save
            file_path: Path where to save the key
            password: Optional password for encryption
        """
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        encryption_algorithm = serialization.NoEncryption()
        if password is not None:
            encryption_algorithm = serialization.BestAvailableEncryption(password)

        pem_bytes = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption_algorithm
        )

        with open(file_path, 'wb') as f:
            f.write(pem_bytes)

        os.chmod(file_path, 0o600)

    def save_public_key(self, public_key: PublicKey, file_path: str) -> None:
        """
        Save a public key to a PEM file.

        Args:
            public_key: Public key to save
            file_path: Path where to save the key
        """
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'wb') as f:
            f.write(self.public_key_pem(public_key))

    def save_keyring(self, public_keys, file_path: str) -> None:
        """Write several public keys as concatenated PEM blocks to one file."""
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'wb') as f:
            for public_key in public_keys:
                f.write(self.public_key_pem(public_key))

    def load_private_key(self,
                         file_path: str,
                         password: Optional[bytes] = None) -> PrivateKey:
        """
        Load a private key from a PEM file.

        Args:
            file_path: Path to the private key file
            password: Optional password for decryption

        Returns:
            Private key object
        """
        if not Path(file_path).exists():
            raise FileNotFoundError(f"Private key file not found: {file_path}")

        with open(file_path, 'rb') as f:
            pem_data = f.read()

        return serialization.load_pem_private_key(pem_data, password=password)

    def load_keyring(self, keyring_path: str) -> Keyring:
        """
        Load the trusted keyring from a PEM file or a directory of PEM files.

        A keyring file may hold any number of concatenated ``PUBLIC KEY``
        or ``RSA PUBLIC KEY`` blocks. A directory contributes every ``*.pem`` and ``*.pub`` file
        directly inside it, in name order.

        Args:
            keyring_path: Path to the keyring file or directory

        Returns:
            Keyring holding every key found

        Raises:
            KeyringError: if the path is missing, unreadable, malformed or
                holds no keys
        """
        path = Path(keyring_path)
        if not path.exists():
            raise KeyringError(f"Keyring not found: {keyring_path}")

        if path.is_dir():
            files = sorted(p for p in path.iterdir()
                           if p.is_file() and p.suffix in KEYRING_FILE_SUFFIXES)
        else:
            files = [path]

        keys = []
        for key_file in files:
            try:
                with open(key_file, 'rb') as f:
                    pem_data = f.read()
            except OSError as e:
                raise KeyringError(f"Could not read keyring file {key_file}: {e}") from e
            keys.extend(self._parse_public_keys(pem_data, str(key_file)))

        if not keys:
            raise KeyringError(f"No public keys found in keyring {keyring_path}")

        return Keyring(keys, source=str(path))

    def _parse_public_keys(self, pem_data: bytes, origin: str) -> List[PublicKey]:
        """Split concatenated PEM public key blocks and load each of them."""
        keys = []
        position = 0
        while True:
            begin = PEM_PUBLIC_KEY_BEGIN.search(pem_data, position)
            if begin is None:
                break
            end_line = b"-----END " + begin.group(1) + b"-----"
            end = pem_data.find(end_line, begin.end())
            if end == -1:
                raise KeyringError(f"Unterminated public key block in {origin}")
            end += len(end_line)
            try:
                key = serialization.load_pem_public_key(pem_data[begin.start():end])
            except (ValueError, TypeError) as e:
                raise KeyringError(f"Malformed public key in {origin}: {e}") from e
            if not isinstance(key, (RSAPublicKey, EllipticCurvePublicKey, Ed25519PublicKey)):
                raise KeyringError(f"Unsupported public key type {type(key).__name__} in {origin}")
            keys.append(key)
            position = end
        return keys

    @staticmethod
    def public_key_pem(public_key: PublicKey) -> bytes:
        return public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )

    @staticmethod
    def fingerprint(public_key: PublicKey) -> str:
        """Short, stable identifier of a public key for log messages."""
        der_bytes = public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )
        digest = hashes.Hash(hashes.SHA256())
        digest.update(der_bytes)
        return base64.b64encode(digest.finalize()).decode('utf-8')[:32]

    def get_key_info(self, key: Union[PrivateKey, PublicKey]) -> dict:
        """
        Get information about a cryptographic key.

        Args:
            key: Key object to analyze

        Returns:
            Dictionary containing key information
        """
        info = {
            'type': type(key).__name__,
            'is_private': isinstance(key, (RSAPrivateKey, EllipticCurvePrivateKey, Ed25519PrivateKey))
        }

        public_key = key.public_key() if info['is_private'] else key

        if isinstance(public_key, RSAPublicKey):
            info.update({
                'algorithm': 'RSA',
                'key_size': public_key.key_size,
                'public_exponent': public_key.public_numbers().e
            })
        elif isinstance(public_key, EllipticCurvePublicKey):
            info.update({
                'algorithm': 'ECDSA',
                'curve': public_key.curve.name,
                'key_size': public_key.curve.key_size
            })
        elif isinstance(public_key, Ed25519PublicKey):
            info['algorithm'] = 'Ed25519'

        info['fingerprint'] = self.fingerprint(public_key)
        return info
