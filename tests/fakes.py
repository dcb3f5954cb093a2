"""
Test doubles shared by the verification tests.
"""

import io
import os
from typing import Dict, List, Optional

from fetching import Fetcher, FetchError
from signing import ArtifactSigner, KeyManager

ARTIFACT_URL = "https://foo.bar.baz/artifacts/myapp_abc123.tar.gz"
ARTIFACT_BYTES = b"\x1f\x8b\x08\x00 pretend this is a gzipped tarball \x00\x01\x02" * 64


class DictFetcher(Fetcher):
    """Serves objects from a dict of URL -> bytes and records every request."""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects = dict(objects or {})
        self.requests: List[str] = []

    def copy_local(self, source, destination_path):
        url = str(source)
        self.requests.append(url)
        if url not in self.objects:
            raise FetchError(f"404 Not Found: {url}", url=url)
        with open(destination_path, 'wb') as f:
            f.write(self.objects[url])


class RecordingStream(io.BytesIO):
    """BytesIO that records the offsets it is rewound to."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.seeks: List[int] = []

    def seek(self, offset, whence=io.SEEK_SET):
        self.seeks.append(offset)
        return super().seek(offset, whence)


class UnseekableStream(io.BytesIO):
    """BytesIO that behaves like a pipe: readable but never seekable."""

    def seekable(self):
        return False

    def seek(self, offset, whence=io.SEEK_SET):
        raise io.UnsupportedOperation("seek")


class FailingStream(io.BytesIO):
    """BytesIO whose reads fail like a disk I/O error."""

    def read(self, size=-1):
        raise OSError(5, "Input/output error")


def make_signer(kind: str = 'ed25519') -> ArtifactSigner:
    key_manager = KeyManager()
    if kind == 'rsa':
        private_key, _ = key_manager.generate_rsa_key_pair()
    elif kind == 'ecdsa':
        private_key, _ = key_manager.generate_ecdsa_key_pair()
    else:
        private_key, _ = key_manager.generate_ed25519_key_pair()
    return ArtifactSigner(private_key=private_key)


def write_keyring(directory: str, *signers: ArtifactSigner) -> str:
    path = os.path.join(directory, 'keyring.pem')
    KeyManager().save_keyring([signer.public_key() for signer in signers], path)
    return path


def publish(fetcher: DictFetcher,
            signer: ArtifactSigner,
            artifact_bytes: bytes = ARTIFACT_BYTES,
            artifact_url: str = ARTIFACT_URL,
            armored: bool = False,
            manifest: Optional[bytes] = None,
            with_manifest: bool = True,
            with_signature: bool = True) -> None:
    """Place an artifact's trust companions where DictFetcher will serve them."""
    sign = signer.sign_bytes_armored if armored else signer.sign_bytes
    if with_manifest:
        manifest_bytes = manifest if manifest is not None else signer.create_manifest(artifact_bytes)
        fetcher.objects[artifact_url + ".manifest"] = manifest_bytes
        fetcher.objects[artifact_url + ".manifest.sig"] = sign(manifest_bytes)
    if with_signature:
        fetcher.objects[artifact_url + ".sig"] = sign(artifact_bytes)
