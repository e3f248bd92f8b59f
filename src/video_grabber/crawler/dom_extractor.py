"""
DOM Extractor - Video Grabber

One-shot scan of media-bearing elements after navigation.
"""

import logging
from typing import List

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


DOM_SCAN_SCRIPT = """
() => {
    const found = [];
    document.querySelectorAll('video').forEach((v) => {
        if (v.src) found.push(v.src);
        if (v.currentSrc) found.push(v.currentSrc);
    });
    document.querySelectorAll('source').forEach((s) => {
        if (s.src) found.push(s.src);
    });
    document.querySelectorAll('iframe').forEach((f) => {
        if (f.src) found.push(f.src);
    });
    return found;
}
"""


class DOMExtractor:
    """Collect video, source and iframe URLs from the current page."""

    async def extract(self, page) -> List[str]:
        """
        Scan the page DOM.

        Args:
            page: Playwright page object

        Returns:
            Flat list of URLs, duplicates allowed. Empty if the scan failed.
        """
        try:
            found = await page.evaluate(DOM_SCAN_SCRIPT)
        except PlaywrightError as e:
            logger.warning(f"DOM scan failed: {e}")
            return []

        urls = [u for u in (found or []) if isinstance(u, str) and u]
        logger.debug(f"DOM scan found {len(urls)} element source(s)")
        return urls
