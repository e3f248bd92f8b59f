"""
Video Crawler - Video Grabber

Request boundary: takes a page URL, returns the media URLs found on it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import SERVERLESS_ENV
from .aggregator import aggregate
from .browser_manager import BrowserManager
from .dom_extractor import DOMExtractor
from .executable_resolver import ExecutableResolver, ResolutionError, get_executable_resolver
from .navigator import Navigator
from .network_monitor import CandidateSet, NetworkMonitor

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    success: bool
    videos: List[str] = field(default_factory=list)
    message: Optional[str] = None
    status: int = 200

    @classmethod
    def failure(cls, message: str, status: int = 500) -> 'ExtractionResult':
        return cls(success=False, message=message, status=status)

    def to_dict(self) -> Dict:
        if self.success:
            return {'success': True, 'videos': list(self.videos)}
        return {'success': False, 'message': self.message}


class VideoCrawler:
    """
    Video Crawler - Media URL Extraction

    resolve executable -> open browser -> attach monitor -> navigate
    -> scan DOM -> aggregate. The browser is closed on every path.
    """

    def __init__(
        self,
        browser_manager: Optional[BrowserManager] = None,
        resolver: Optional[ExecutableResolver] = None,
        navigator: Optional[Navigator] = None,
        dom_extractor: Optional[DOMExtractor] = None,
        serverless: bool = SERVERLESS_ENV,
    ):
        """
        Initialize crawler.

        Args:
            browser_manager: Session manager, built from config if omitted
            resolver: Executable resolver, process-wide one if omitted
            navigator: Navigation controller
            dom_extractor: DOM scanner
            serverless: Use the provisioned browser instead of the bundled one
        """
        self.serverless = serverless
        self.browser = browser_manager or BrowserManager(serverless=serverless)
        self.resolver = resolver
        self.navigator = navigator or Navigator()
        self.dom_extractor = dom_extractor or DOMExtractor()

    async def extract(self, url) -> ExtractionResult:
        """
        Find playable media URLs on a page.

        Args:
            url: Page URL

        Returns:
            ExtractionResult; navigation trouble still yields success
        """
        if not url or not isinstance(url, str) or not url.strip():
            logger.warning("Rejected extraction request without URL")
            return ExtractionResult.failure("URL is required", status=400)

        url = url.strip()
        candidates = CandidateSet()

        try:
            executable_path = await self._executable_path()

            async with self.browser.session(executable_path, url) as session:
                monitor = NetworkMonitor(candidates)
                await monitor.attach(session.page)

                outcome = await self.navigator.run(session.page, url, session=session)
                if not outcome.success:
                    logger.warning(f"Navigation failed for {url}, using collected candidates")

                dom_urls = await self.dom_extractor.extract(session.page)

            videos = aggregate(candidates, dom_urls)

        except ResolutionError as e:
            logger.error(f"Browser unavailable for {url}: {e}")
            return ExtractionResult.failure(str(e))
        except Exception as e:
            logger.error(f"Crawler error for {url}: {e}", exc_info=True)
            return ExtractionResult.failure(str(e) or e.__class__.__name__)

        logger.info(f"Found {len(videos)} video(s) on {url}")
        return ExtractionResult(success=True, videos=videos)

    async def _executable_path(self) -> Optional[str]:
        """Provisioned binary on serverless hosts, Playwright's bundled one elsewhere."""
        if not self.serverless:
            return None

        if self.resolver is None:
            self.resolver = get_executable_resolver()
        return await self.resolver.resolve()


async def extract_videos(url) -> Dict:
    """
    Extract media URLs from a page.

    Args:
        url: Page URL

    Returns:
        {'success': True, 'videos': [...]} or {'success': False, 'message': ...}
    """
    result = await VideoCrawler().extract(url)
    return result.to_dict()
