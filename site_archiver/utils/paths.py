"""
Path and URL utilities for the site archiver.

Provides path segment sanitization, URL resolution, and directory management.
"""

import os
import re
from typing import Iterable
from urllib.parse import urljoin, urlsplit, urlunsplit, unquote

from .constants import INDEX_WIDTH, MAX_SEGMENT_BYTES
from ..errors import UrlResolutionError


# C0 and C1 control characters, including DEL
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')

# Path separators and characters that are invalid on common filesystems
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')

_WHITESPACE = re.compile(r'\s+')


def sanitize(name: str) -> str:
    """
    Turn arbitrary text into a single filesystem-safe path segment.

    Control characters become spaces, separators and reserved characters
    become underscores, whitespace runs collapse to one space, and leading
    or trailing spaces and dots are dropped. The result is at most
    ``MAX_SEGMENT_BYTES`` long in UTF-8. The mapping is idempotent:
    ``sanitize(sanitize(x)) == sanitize(x)``.

    Args:
        name: Candidate name, e.g. link text or a URL file name

    Returns:
        Non-empty path segment
    """
    segment = _CONTROL_CHARS.sub(' ', name)
    segment = _UNSAFE_CHARS.sub('_', segment)
    segment = _WHITESPACE.sub(' ', segment)
    segment = segment.strip(' .')

    encoded = segment.encode('utf-8')
    if len(encoded) > MAX_SEGMENT_BYTES:
        # cut on the byte budget, dropping any split multibyte character
        segment = encoded[:MAX_SEGMENT_BYTES].decode('utf-8', 'ignore').rstrip(' .')

    return segment or '_'


def indexed_filename(index: int, filename: str) -> str:
    """
    Build the positional file name ``<index>-<sanitized filename>``.

    Args:
        index: Zero-based position of the element in the document
        filename: Raw file name

    Returns:
        File name such as ``004-cover.jpg``
    """
    return f"{index:0{INDEX_WIDTH}d}-{sanitize(filename)}"


def resolve_url(base_url: str, reference: str) -> str:
    """
    Resolve a possibly relative reference against the page it came from.

    Args:
        base_url: URL of the page containing the reference
        reference: Value of an href/src attribute

    Returns:
        Absolute URL

    Raises:
        UrlResolutionError: If the reference cannot be resolved to an
            absolute URL
    """
    try:
        resolved = urljoin(base_url, reference.strip())
        parts = urlsplit(resolved)
    except ValueError as e:
        raise UrlResolutionError(
            f"Failed to make url from base: '{base_url}' and reference: '{reference}'"
        ) from e

    if not parts.scheme or (parts.scheme in ('http', 'https') and not parts.netloc):
        raise UrlResolutionError(
            f"Failed to make url from base: '{base_url}' and reference: '{reference}'"
        )

    return resolved


def filename_from_url(url: str) -> str:
    """
    Get the percent-decoded final path segment of a URL.

    Args:
        url: Absolute resource URL

    Returns:
        Decoded file name (may be empty when the path ends with '/')
    """
    path = urlsplit(url).path
    return unquote(path.rsplit('/', 1)[-1])


def strip_fragment(url: str) -> str:
    """
    Remove the fragment from a URL so equal pages compare equal.

    Args:
        url: URL to clean

    Returns:
        URL without its ``#fragment``
    """
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path or '/', parts.query, ''))


def get_domain(url: str) -> str:
    """
    Extract the host name from a URL.

    Args:
        url: URL to extract domain from

    Returns:
        Lower-cased host (e.g., 'example.com'), without port
    """
    return (urlsplit(url).hostname or '').lower()


def is_allowed_domain(url: str, allowed_domains: Iterable[str]) -> bool:
    """
    Check whether a URL's host is on the allow-list.

    A host matches an allowed domain exactly or as one of its subdomains.

    Args:
        url: URL to check
        allowed_domains: Allowed host names

    Returns:
        True if the host is allowed, False otherwise
    """
    host = get_domain(url)
    if not host:
        return False

    for domain in allowed_domains:
        domain = domain.lower().strip('.')
        if host == domain or host.endswith('.' + domain):
            return True
    return False


def ensure_dir(path: str) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists
    """
    os.makedirs(path, exist_ok=True)


def ensure_parent_dir(file_path: str) -> None:
    """
    Ensure the parent directory of a file exists.

    Args:
        file_path: File path whose parent directory should exist
    """
    parent = os.path.dirname(file_path)
    if parent:
        ensure_dir(parent)
