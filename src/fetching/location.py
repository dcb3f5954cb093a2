"""
Artifact Location Module

URL value type for remote artifacts and the naming convention for their
trust companions.
"""

from urllib.parse import urlsplit, urlunsplit, SplitResult
from typing import Union

SUPPORTED_SCHEMES = frozenset({'file', 'gs', 'http', 'https'})

MANIFEST_SUFFIX = '.manifest'
SIGNATURE_SUFFIX = '.sig'


class ArtifactLocation:
    """An immutable URL identifying a remote artifact."""

    __slots__ = ('_parts',)

    def __init__(self, url: Union[str, 'ArtifactLocation', SplitResult]):
        if isinstance(url, ArtifactLocation):
            parts = url._parts
        elif isinstance(url, SplitResult):
            parts = url
        else:
            parts = urlsplit(str(url))
        object.__setattr__(self, '_parts', parts)

    def __setattr__(self, name, value):
        raise AttributeError("ArtifactLocation is immutable")

    @property
    def scheme(self) -> str:
        return self._parts.scheme

    @property
    def netloc(self) -> str:
        return self._parts.netloc

    @property
    def path(self) -> str:
        return self._parts.path

    @property
    def query(self) -> str:
        return self._parts.query

    @property
    def fragment(self) -> str:
        return self._parts.fragment

    @property
    def is_supported(self) -> bool:
        return self.scheme in SUPPORTED_SCHEMES

    def with_path_suffix(self, suffix: str) -> 'ArtifactLocation':
        """Companion location: the same URL with suffix appended to the path only."""
        return ArtifactLocation(self._parts._replace(path=self._parts.path + suffix))

    def manifest_location(self) -> 'ArtifactLocation':
        return self.with_path_suffix(MANIFEST_SUFFIX)

    def manifest_signature_location(self) -> 'ArtifactLocation':
        return self.with_path_suffix(MANIFEST_SUFFIX + SIGNATURE_SUFFIX)

    def signature_location(self) -> 'ArtifactLocation':
        return self.with_path_suffix(SIGNATURE_SUFFIX)

    def __str__(self) -> str:
        return urlunsplit(self._parts)

    def __repr__(self) -> str:
        return f"ArtifactLocation({str(self)!r})"

    def __eq__(self, other) -> bool:
        if isinstance(other, ArtifactLocation):
            return self._parts == other._parts
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._parts)
