"""
Aggregator - Video Grabber

Merges DOM findings into the candidate set and drops anything
that is not an absolute URL.
"""

import logging
import re
from typing import Iterable, List
from urllib.parse import urlsplit

from .network_monitor import CandidateSet

logger = logging.getLogger(__name__)


SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*$')

# Schemes that are meaningless without a host
HOST_SCHEMES = {'http', 'https', 'ws', 'wss', 'ftp'}

# Code points a URL host may not contain
FORBIDDEN_HOST_CHARS = frozenset(' #/:<>?@[\\]^|') | frozenset(map(chr, range(0x21))) | {'\x7f'}


def is_absolute_url(value: str) -> bool:
    """Check that a string parses as an absolute URL."""
    if not isinstance(value, str) or not value or value != value.strip():
        return False

    try:
        parts = urlsplit(value)
        # Raises ValueError on a malformed port
        parts.port
    except ValueError:
        return False

    if not parts.scheme or not SCHEME_RE.match(parts.scheme):
        return False

    if parts.scheme.lower() in HOST_SCHEMES:
        return is_valid_host(parts)

    return bool(value.split(':', 1)[1])


def is_valid_host(parts) -> bool:
    """Check the host of a split URL. Bracketed IPv6 literals are left to urlsplit."""
    host = parts.hostname
    if not host:
        return False
    if parts.netloc.rpartition('@')[2].startswith('['):
        return True
    return not any(c in FORBIDDEN_HOST_CHARS for c in host)


def aggregate(candidates: CandidateSet, dom_urls: Iterable[str]) -> List[str]:
    """
    Merge DOM URLs and return the valid candidates.

    Args:
        candidates: Network-observed candidates
        dom_urls: URLs from the DOM scan

    Returns:
        Unique absolute URLs, network hits first, then DOM hits
    """
    candidates.update(dom_urls)

    videos = []
    for url in candidates.snapshot():
        if is_absolute_url(url):
            videos.append(url)
        else:
            logger.debug(f"Dropping invalid candidate: {url[:80]}")

    logger.info(f"Aggregated {len(videos)} video URL(s) from {len(candidates)} candidate(s)")
    return videos
