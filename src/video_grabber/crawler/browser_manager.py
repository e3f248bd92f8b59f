"""
Browser Manager - Video Grabber

Launches one Playwright Chromium instance per extraction request
with stealth defaults, and guarantees it is torn down.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from playwright.async_api import async_playwright

from ..config import BROWSER_HEADLESS, MAX_ATTEMPTS, USER_AGENT, VIEWPORT

logger = logging.getLogger(__name__)


LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--disable-gpu',
    '--window-size=1920x1080',
    '--disable-blink-features=AutomationControlled',
]

# Extra flags for the downloaded serverless Chromium build
SERVERLESS_ARGS = [
    '--allow-running-insecure-content',
    '--disable-site-isolation-trials',
    '--disable-web-security',
    '--no-zygote',
    '--single-process',
    '--use-gl=angle',
    '--use-angle=swiftshader',
]

IGNORE_DEFAULT_ARGS = ['--enable-automation']

HIDE_WEBDRIVER_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
});
"""


class SessionState(Enum):
    OPEN = 'open'
    CLOSED = 'closed'


@dataclass
class CrawlSession:
    """Browser resources owned by a single extraction request."""
    target_url: str
    playwright: Any
    browser: Any
    context: Any
    page: Any
    retries_remaining: int = MAX_ATTEMPTS
    state: SessionState = SessionState.OPEN


class BrowserManager:
    """
    Browser Manager - Playwright Integration

    One browser per session, no reuse across requests.
    """

    def __init__(self, headless: bool = BROWSER_HEADLESS, serverless: bool = False):
        """
        Initialize browser manager.

        Args:
            headless: Run Chromium without a window
            serverless: Prepend the serverless Chromium flags
        """
        self.headless = headless
        self.serverless = serverless

    def launch_options(self, executable_path: Optional[str] = None) -> dict:
        """
        Build Chromium launch options.

        Args:
            executable_path: Provisioned binary, None for Playwright's bundled one

        Returns:
            Keyword arguments for `chromium.launch`
        """
        args = list(LAUNCH_ARGS)
        if self.serverless:
            args = SERVERLESS_ARGS + args

        options = {
            'headless': self.headless,
            'args': args,
            'ignore_default_args': IGNORE_DEFAULT_ARGS,
        }
        if executable_path:
            options['executable_path'] = executable_path

        return options

    async def open_session(self, executable_path: Optional[str], target_url: str) -> CrawlSession:
        """
        Launch a browser and prepare a page for navigation.

        Args:
            executable_path: Browser binary, None for the bundled one
            target_url: Page the session will crawl

        Returns:
            Open crawl session
        """
        playwright = await async_playwright().start()
        browser = None

        try:
            browser = await playwright.chromium.launch(**self.launch_options(executable_path))
            context = await browser.new_context(
                user_agent=USER_AGENT,
                viewport=VIEWPORT,
            )
            # Must be registered before the first navigation
            await context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
            page = await context.new_page()

        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            if browser is not None:
                await self._safe_close(browser.close, 'browser')
            await self._safe_close(playwright.stop, 'playwright')
            raise

        logger.info(f"Browser launched for {target_url}")
        return CrawlSession(
            target_url=target_url,
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
        )

    async def close_session(self, session: CrawlSession):
        """
        Close the session's browser. Safe to call more than once.

        Args:
            session: Session to close
        """
        if session.state is SessionState.CLOSED:
            return

        session.state = SessionState.CLOSED

        await self._safe_close(session.context.close, 'context')
        await self._safe_close(session.browser.close, 'browser')
        await self._safe_close(session.playwright.stop, 'playwright')

        logger.info(f"Browser closed for {session.target_url}")

    @asynccontextmanager
    async def session(self, executable_path: Optional[str], target_url: str):
        """Open a session and close it on every exit path."""
        crawl_session = await self.open_session(executable_path, target_url)
        try:
            yield crawl_session
        finally:
            await self.close_session(crawl_session)

    @staticmethod
    async def _safe_close(close, name: str):
        try:
            await close()
        except Exception as e:
            logger.warning(f"Error closing {name}: {e}")
