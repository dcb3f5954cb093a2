"""
Test suite for trust document parsing and digest matching.
"""

import hashlib
import io

import pytest

from verification import DigestMismatch, LocalCopyReadError, ParseError, TrustDocument, check_matching_digest
from verification.digest import CHUNK_SIZE, calculate_digest


class TestTrustDocument:
    """Test cases for TrustDocument parsing."""

    def test_parses_digest(self):
        document = TrustDocument.from_bytes(b"artifact_sha: abc123\n")

        assert document.artifact_sha == "abc123"
        assert document.to_dict() == {'artifact_sha': 'abc123'}

    def test_ignores_unknown_keys(self):
        document = TrustDocument.from_bytes(b"built_by: ci\nartifact_sha: abc123\n")

        assert document.artifact_sha == "abc123"

    def test_numeric_looking_digest_stays_a_string(self):
        digits = "1" * 64

        assert TrustDocument.from_bytes(f"artifact_sha: {digits}\n".encode()).artifact_sha == digits
        assert TrustDocument.from_bytes(b"artifact_sha: 1e10\n").artifact_sha == "1e10"

    @pytest.mark.parametrize("manifest", [
        b"",
        b"- artifact_sha\n",
        b"artifact_sha:\n",
        b"artifact_sha: ''\n",
        b"artifact_sha: ~\n",
        b"artifact_sha: null\n",
        b"artifact_sha: NULL\n",
        b"artifact_sha: [a, b]\n",
        b"{unbalanced\n",
    ])
    def test_unusable_documents(self, manifest):
        with pytest.raises(ParseError):
            TrustDocument.from_bytes(manifest)


class TestCheckMatchingDigest:
    """Test cases for digest comparison."""

    def setup_method(self):
        self.data = b"artifact" * (CHUNK_SIZE // 4)
        self.digest = hashlib.sha256(self.data).hexdigest()

    def test_streaming_digest_consumes_whole_stream(self):
        stream = io.BytesIO(self.data)

        assert calculate_digest(stream) == self.digest
        assert stream.read() == b""

    def test_matching_digest(self):
        check_matching_digest(io.BytesIO(self.data), f"artifact_sha: {self.digest}\n".encode())

    def test_mismatch(self):
        with pytest.raises(DigestMismatch) as excinfo:
            check_matching_digest(io.BytesIO(self.data + b"!"), f"artifact_sha: {self.digest}\n".encode())

        assert excinfo.value.expected == self.digest
        assert excinfo.value.actual == hashlib.sha256(self.data + b"!").hexdigest()

    def test_uppercase_digest_is_a_mismatch(self):
        with pytest.raises(DigestMismatch):
            check_matching_digest(io.BytesIO(self.data), f"artifact_sha: {self.digest.upper()}\n".encode())

    def test_truncated_digest_is_a_mismatch(self):
        with pytest.raises(DigestMismatch):
            check_matching_digest(io.BytesIO(self.data), f"artifact_sha: {self.digest[:-1]}\n".encode())

    def test_read_failure_carries_url(self):
        stream = io.BytesIO(self.data)
        stream.close()

        with pytest.raises(LocalCopyReadError) as excinfo:
            check_matching_digest(stream, f"artifact_sha: {self.digest}\n".encode(), url="https://foo.bar.baz/app.tar.gz")

        assert excinfo.value.url == "https://foo.bar.baz/app.tar.gz"
        assert excinfo.value.stage == 'digest'

    def test_parse_error_is_not_a_mismatch(self):
        with pytest.raises(ParseError):
            check_matching_digest(io.BytesIO(self.data), b"artifact_sha: [\n")
