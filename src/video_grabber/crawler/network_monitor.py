"""
Network Monitor - Video Grabber

Classifies page traffic and collects media URLs from requests and responses.
"""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class CandidateSet:
    """
    Insertion-ordered set of candidate URLs.

    Listener callbacks and the crawler both write here, so every
    mutation goes through one lock.
    """

    def __init__(self):
        self._urls = {}
        self._lock = threading.Lock()

    def add(self, url: str) -> bool:
        """Insert a URL. Returns True if it was new."""
        with self._lock:
            if url in self._urls:
                return False
            self._urls[url] = None
            return True

    def update(self, urls: Iterable[str]):
        for url in urls:
            self.add(url)

    def snapshot(self) -> List[str]:
        """Members in insertion order."""
        with self._lock:
            return list(self._urls)

    def __contains__(self, url) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)


@dataclass(frozen=True)
class MatchRule:
    """Named predicate over a (url, content_type) pair."""
    name: str
    predicate: Callable[[str, str], bool]

    def matches(self, url: str, content_type: str = '') -> bool:
        return self.predicate(url, content_type)


REQUEST_EXTENSION_RE = re.compile(r'\.(mp4|webm|m3u8|mkv|avi|mov|flv)(\?|$)', re.IGNORECASE)
RESPONSE_EXTENSION_RE = re.compile(r'\.(mp4|webm|m3u8|mkv)(\?|$)', re.IGNORECASE)

STREAMING_CDN_MARKERS = ('googlevideo.com',)
HLS_MIME_TYPE = 'application/vnd.apple.mpegurl'

REQUEST_RULES = (
    MatchRule('extension', lambda url, _: REQUEST_EXTENSION_RE.search(url) is not None),
    MatchRule('video-path', lambda url, _: '/video' in url),
    MatchRule('streaming-cdn', lambda url, _: any(m in url for m in STREAMING_CDN_MARKERS)),
    MatchRule('videoplayback', lambda url, _: 'videoplayback' in url),
)

RESPONSE_RULES = (
    MatchRule('video-content-type', lambda _, ct: 'video/' in ct),
    MatchRule('hls-content-type', lambda _, ct: HLS_MIME_TYPE in ct),
    MatchRule('extension', lambda url, _: RESPONSE_EXTENSION_RE.search(url) is not None),
)


def match_rule(rules, url: str, content_type: str = '') -> Optional[MatchRule]:
    """Return the first rule hit, None if no rule matches."""
    for rule in rules:
        if rule.matches(url, content_type):
            return rule
    return None


def is_media_request(url: str) -> bool:
    return match_rule(REQUEST_RULES, url) is not None


def is_media_response(url: str, content_type: str) -> bool:
    return match_rule(RESPONSE_RULES, url, content_type.lower()) is not None


class NetworkMonitor:
    """
    Network Monitor - URL Capture

    Passive request/response listeners feeding a CandidateSet.
    Candidates accumulate for the whole session, across page reloads.
    """

    def __init__(self, candidates: CandidateSet):
        """
        Initialize network monitor.

        Args:
            candidates: Shared set the listeners write into
        """
        self.candidates = candidates

    async def attach(self, page):
        """
        Register listeners on a page. Call before the first navigation.

        Args:
            page: Playwright page object
        """
        await page.route('**/*', self.on_route)
        page.on('response', self.on_response)
        logger.debug("Network monitor attached")

    async def on_route(self, route):
        """Classify an outgoing request, then let it through untouched."""
        try:
            self.on_request(route.request)
        finally:
            try:
                await route.continue_()
            except Exception as e:
                # Page may already be closing
                logger.debug(f"Could not continue request: {e}")

    def on_request(self, request):
        url = request.url
        rule = match_rule(REQUEST_RULES, url)
        if rule and self.candidates.add(url):
            logger.debug(f"Captured request ({rule.name}): {url[:80]}")

    def on_response(self, response):
        url = response.url
        content_type = (response.headers.get('content-type') or '').lower()
        rule = match_rule(RESPONSE_RULES, url, content_type)
        if rule and self.candidates.add(url):
            logger.debug(f"Captured response ({rule.name}): {url[:80]}")
