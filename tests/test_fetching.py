"""
Test suite for artifact locations and the URI fetcher.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest import mock

import pytest
import requests

from fetching import ArtifactLocation, FetchError, URIFetcher


class TestArtifactLocation:
    """Test cases for ArtifactLocation."""

    def test_companion_locations(self):
        location = ArtifactLocation("https://foo.bar.baz/artifacts/myapp_abc123.tar.gz")

        assert str(location.manifest_location()) == "https://foo.bar.baz/artifacts/myapp_abc123.tar.gz.manifest"
        assert str(location.manifest_signature_location()) == \
            "https://foo.bar.baz/artifacts/myapp_abc123.tar.gz.manifest.sig"
        assert str(location.signature_location()) == "https://foo.bar.baz/artifacts/myapp_abc123.tar.gz.sig"

    def test_suffix_goes_on_path_only(self):
        location = ArtifactLocation("gs://bucket/app.tar.gz?generation=12#part")

        assert str(location.signature_location()) == "gs://bucket/app.tar.gz.sig?generation=12#part"

    def test_file_urls_round_trip(self):
        assert str(ArtifactLocation("file:///srv/app.tar.gz")) == "file:///srv/app.tar.gz"

    @pytest.mark.parametrize("url, supported", [
        ("file:///srv/app.tar.gz", True),
        ("gs://bucket/app.tar.gz", True),
        ("http://host/app.tar.gz", True),
        ("HTTPS://host/app.tar.gz", True),
        ("ftp://host/app.tar.gz", False),
        ("app.tar.gz", False),
    ])
    def test_supported_schemes(self, url, supported):
        assert ArtifactLocation(url).is_supported is supported

    def test_immutable_and_hashable(self):
        location = ArtifactLocation("https://host/app.tar.gz")

        with pytest.raises(AttributeError):
            location.path = "/other"
        assert location == ArtifactLocation(location)
        assert len({location, ArtifactLocation("https://host/app.tar.gz")}) == 1


class TestURIFetcher:
    """Test cases for URIFetcher."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.destination = os.path.join(self.temp_dir, 'out')

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def make_session(self, chunks=(b"payload",), status_error=None, get_error=None):
        response = mock.MagicMock()
        response.__enter__.return_value = response
        response.iter_content.return_value = list(chunks)
        if status_error is not None:
            response.raise_for_status.side_effect = status_error
        session = mock.Mock(spec=requests.Session)
        if get_error is not None:
            session.get.side_effect = get_error
        else:
            session.get.return_value = response
        return session

    def test_copies_file_urls(self):
        source = Path(self.temp_dir) / 'artifact with space.tar.gz'
        source.write_bytes(b"artifact bytes")

        URIFetcher().copy_local(source.as_uri(), self.destination)

        assert Path(self.destination).read_bytes() == b"artifact bytes"

    def test_missing_file(self):
        with pytest.raises(FetchError):
            URIFetcher().copy_local(f"file://{self.temp_dir}/missing", self.destination)

    def test_remote_file_host_rejected(self):
        with pytest.raises(FetchError):
            URIFetcher().copy_local("file://otherhost/srv/app.tar.gz", self.destination)

    def test_downloads_http(self):
        session = self.make_session(chunks=(b"pay", b"", b"load"))

        URIFetcher(timeout=5, session=session).copy_local("https://host/app.tar.gz.sig", self.destination)

        session.get.assert_called_once_with("https://host/app.tar.gz.sig", stream=True, timeout=5)
        assert Path(self.destination).read_bytes() == b"payload"

    def test_gs_is_served_over_https(self):
        session = self.make_session()

        URIFetcher(session=session).copy_local("gs://bucket/dir/app.tar.gz.manifest", self.destination)

        url = session.get.call_args[0][0]
        assert url == "https://storage.googleapis.com/bucket/dir/app.tar.gz.manifest"

    def test_http_error_status(self):
        session = self.make_session(status_error=requests.HTTPError("404 Client Error"))

        with pytest.raises(FetchError) as excinfo:
            URIFetcher(session=session).copy_local("https://host/app.tar.gz.sig", self.destination)

        assert excinfo.value.url == "https://host/app.tar.gz.sig"

    def test_timeout(self):
        session = self.make_session(get_error=requests.Timeout("read timed out"))

        with pytest.raises(FetchError):
            URIFetcher(session=session).copy_local("http://host/app.tar.gz.sig", self.destination)

    def test_unsupported_scheme(self):
        with pytest.raises(FetchError):
            URIFetcher().copy_local("ftp://host/app.tar.gz", self.destination)
