"""
Artifact Trust - Fetching Module

Artifact locations and the fetchers that copy remote objects to local disk.
"""

from .location import ArtifactLocation, SUPPORTED_SCHEMES
from .fetcher import Fetcher, FetchError, URIFetcher

__all__ = ['ArtifactLocation', 'SUPPORTED_SCHEMES', 'Fetcher', 'FetchError', 'URIFetcher']
