"""
Navigator - Video Grabber

Loads the target page with bounded retries against blank pages.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from ..config import (
    BLANK_TEXT_THRESHOLD,
    MAX_ATTEMPTS,
    NAVIGATION_TIMEOUT,
    RELOAD_PAUSE,
    ROOT_SELECTOR,
    SELECTOR_TIMEOUT,
    SETTLE_DELAY,
)

logger = logging.getLogger(__name__)


VISIBLE_TEXT_SCRIPT = "() => document.body ? document.body.innerText.trim() : ''"


class BlankPageError(Exception):
    """Page loaded but shows too little text to be rendered."""
    pass


class NavState(Enum):
    LOADING = 'loading'
    VALIDATING = 'validating'
    BLANK_DETECTED = 'blank_detected'
    RELOADING = 'reloading'
    SUCCESS = 'success'
    FAILED = 'failed'


@dataclass
class StepResult:
    """Outcome of a best-effort step. A soft miss carries the error instead of raising it."""
    ok: bool
    error: Optional[Exception] = None


@dataclass
class NavigationOutcome:
    success: bool
    attempts: int
    reloads: int
    state: NavState


class Navigator:
    """
    Navigator - Page Load State Machine

    LOADING -> VALIDATING -> SUCCESS, or BLANK_DETECTED -> RELOADING -> LOADING
    until the attempt budget runs out (FAILED). FAILED is not an error:
    the caller still scans the DOM with whatever the page holds.
    """

    def __init__(self, max_attempts: int = MAX_ATTEMPTS):
        self.max_attempts = max_attempts

    async def run(self, page, url: str, session=None) -> NavigationOutcome:
        """
        Drive the page to a validated, settled state.

        Args:
            page: Playwright page object with listeners attached
            url: Target page URL
            session: Optional CrawlSession whose retry counter is kept in sync

        Returns:
            NavigationOutcome describing how the loop ended

        Raises:
            Exception: Anything other than a navigation error or blank page
        """
        retries = self.max_attempts
        attempts = 0
        reloads = 0
        state = NavState.LOADING

        while state is NavState.LOADING:
            attempts += 1
            logger.info(f"Loading {url} (retries left: {retries})")

            try:
                await page.goto(url, wait_until='domcontentloaded', timeout=NAVIGATION_TIMEOUT)

                found = await self._wait_for_root(page)
                if not found.ok:
                    logger.info(f"Root selector not found, page might be blank: {found.error}")

                state = NavState.VALIDATING
                text = await page.evaluate(VISIBLE_TEXT_SCRIPT)
                if len(text or '') < BLANK_TEXT_THRESHOLD:
                    raise BlankPageError(f"only {len(text or '')} visible characters")

                state = NavState.SUCCESS

            except (PlaywrightError, BlankPageError) as e:
                if isinstance(e, BlankPageError):
                    state = NavState.BLANK_DETECTED
                logger.warning(f"Attempt {attempts} failed: {e}")

                retries -= 1
                if session is not None:
                    session.retries_remaining = retries

                if retries <= 0:
                    state = NavState.FAILED
                    break

                state = NavState.RELOADING
                reloaded = await self._reload(page)
                reloads += 1
                if not reloaded.ok:
                    logger.warning(f"Reload failed, navigating again: {reloaded.error}")
                await asyncio.sleep(RELOAD_PAUSE)
                state = NavState.LOADING

        if state is NavState.SUCCESS:
            # Let player scripts fire their media requests
            await asyncio.sleep(SETTLE_DELAY)
            logger.info(f"Page validated after {attempts} attempt(s)")
        else:
            logger.warning(f"Giving up on {url} after {attempts} attempts, scanning DOM anyway")

        return NavigationOutcome(
            success=state is NavState.SUCCESS,
            attempts=attempts,
            reloads=reloads,
            state=state,
        )

    async def _wait_for_root(self, page) -> StepResult:
        try:
            await page.wait_for_selector(ROOT_SELECTOR, timeout=SELECTOR_TIMEOUT)
            return StepResult(ok=True)
        except PlaywrightError as e:
            return StepResult(ok=False, error=e)

    async def _reload(self, page) -> StepResult:
        try:
            await page.reload(wait_until='domcontentloaded', timeout=NAVIGATION_TIMEOUT)
            return StepResult(ok=True)
        except PlaywrightError as e:
            return StepResult(ok=False, error=e)
