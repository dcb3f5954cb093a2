"""
Fetcher Module

Copies remote objects to local paths across the transport schemes an
artifact location may use.
"""

import logging
import shutil
from abc import ABC, abstractmethod
from typing import Optional, Union
from urllib.parse import unquote, quote

import requests

from .location import ArtifactLocation

logger = logging.getLogger(__name__)

GCS_ENDPOINT = "https://storage.googleapis.com"
DEFAULT_TIMEOUT = 30.0
CHUNK_SIZE = 8192


class FetchError(Exception):
    """Raised when a remote object cannot be copied to local storage."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class Fetcher(ABC):
    """Abstract base class for copying remote objects to local disk."""

    @abstractmethod
    def copy_local(self, source: Union[str, ArtifactLocation], destination_path: str) -> None:
        """Copy the object at source to destination_path, raising FetchError on failure."""
        pass


class URIFetcher(Fetcher):
    """Fetcher for file, gs, http and https locations."""

    def __init__(self,
                 timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None,
                 gcs_endpoint: str = GCS_ENDPOINT):
        """
        Initialize the fetcher.

        Args:
            timeout: Connect/read timeout in seconds for HTTP transfers
            session: Optional requests session to reuse connections
            gcs_endpoint: Base URL serving ``gs://`` objects over HTTPS
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.gcs_endpoint = gcs_endpoint.rstrip('/')

    def copy_local(self, source: Union[str, ArtifactLocation], destination_path: str) -> None:
        location = ArtifactLocation(source)

        if location.scheme == 'file':
            self._copy_file(location, destination_path)
        elif location.scheme in ('http', 'https'):
            self._download(str(location), destination_path)
        elif location.scheme == 'gs':
            self._download(self.gcs_url(location), destination_path)
        else:
            raise FetchError(f"Cannot fetch {location}: unsupported scheme '{location.scheme}'",
                             url=str(location))

    def gcs_url(self, location: ArtifactLocation) -> str:
        """HTTPS URL serving a ``gs://bucket/object`` location."""
        if not location.netloc:
            raise FetchError(f"Cannot fetch {location}: missing bucket name", url=str(location))
        url = f"{self.gcs_endpoint}/{location.netloc}/{quote(location.path.lstrip('/'))}"
        if location.query:
            url = f"{url}?{location.query}"
        return url

    def _copy_file(self, location: ArtifactLocation, destination_path: str) -> None:
        if location.netloc not in ('', 'localhost'):
            raise FetchError(f"Cannot fetch {location}: file URLs must refer to the local host",
                             url=str(location))

        source_path = unquote(location.path)
        logger.debug("Copying %s to %s", source_path, destination_path)
        try:
            shutil.copyfile(source_path, destination_path)
        except OSError as e:
            raise FetchError(f"Could not copy {location} to {destination_path}: {e}",
                             url=str(location)) from e

    def _download(self, url: str, destination_path: str) -> None:
        logger.debug("Downloading %s to %s", url, destination_path)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(destination_path, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            raise FetchError(f"Could not download {url}: {e}", url=url) from e
        except OSError as e:
            raise FetchError(f"Could not write {url} to {destination_path}: {e}", url=url) from e
