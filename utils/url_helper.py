"""
URL Helper - Utility functions for normalizing catalog URLs

Detail-page URLs are stored and looked up in their normalized form: scheme
and domain stripped, percent-decoded, without trailing slash. This keeps
lookups stable when the catalog moves to a new domain.

Usage:
    from utils.url_helper import normalize_url, absolute_url, clean_thumbnail

    normalize_url('https://catalog.example/download-show-2023/')
    # Returns: 'download-show-2023'

    absolute_url('/download-show-2023/', 'https://catalog.example')
    # Returns: 'https://catalog.example/download-show-2023/'

    clean_thumbnail('https://catalog.example/wp-content/uploads/poster.jpg')
    # Returns: 'wp-content/uploads/poster.jpg'
"""

import re
from typing import Optional
from urllib.parse import unquote, urljoin, urlparse


_SCHEME_DOMAIN_RE = re.compile(r'^https?://[^/]+/?')


def normalize_url(url: Optional[str]) -> str:
    """
    Normalize a detail-page URL for storage and matching.

    Args:
        url: Absolute or relative URL

    Returns:
        Path without scheme/domain, URL-decoded, without leading or
        trailing slashes.
        Empty string for an empty input.
    """
    if not url:
        return ''
    normalized = _SCHEME_DOMAIN_RE.sub('', url.strip())
    normalized = unquote(normalized)
    return normalized.strip('/')


def absolute_url(url: Optional[str], base_url: str) -> str:
    """
    Make *url* absolute against *base_url*.

    Already-absolute URLs are returned unchanged.
    """
    if not url:
        return ''
    if url.startswith('http://') or url.startswith('https://'):
        return url
    return urljoin(base_url.rstrip('/') + '/', url.lstrip('/'))


def clean_thumbnail(thumbnail: Optional[str]) -> str:
    """
    Strip the domain from a thumbnail URL and keep only its path.

    Args:
        thumbnail: Absolute or relative image URL

    Returns:
        Path without leading slashes (e.g. ``'wp-content/uploads/a.jpg'``)
    """
    if not thumbnail:
        return ''
    if '://' in thumbnail:
        path = urlparse(thumbnail).path
        return path.lstrip('/')
    return thumbnail.lstrip('/')


def listing_page_url(base_url: str, page: int) -> str:
    """
    URL of a catalog listing page (``{base}/page/{n}/``).
    """
    return f"{base_url.rstrip('/')}/page/{page}/"
