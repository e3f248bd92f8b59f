"""
Executable Resolver - Video Grabber

Resolves the headless browser binary once per process.
Concurrent callers share a single in-flight provisioning operation.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from ..config import CHROMIUM_CACHE_DIR, CHROMIUM_DOWNLOAD_TIMEOUT, CHROMIUM_PACK_URL
from .provisioner import ChromiumProvisioner

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when the browser executable could not be provisioned."""
    pass


class ResolverState(Enum):
    UNRESOLVED = 'unresolved'
    RESOLVING = 'resolving'
    RESOLVED = 'resolved'


def _retrieve_exception(future: asyncio.Future):
    """Mark a failed attempt as handled even if every waiter was cancelled."""
    if not future.cancelled():
        future.exception()


class ExecutableResolver:
    """
    Executable Resolver - Single-Flight Cache

    State machine over UNRESOLVED -> RESOLVING -> RESOLVED. While RESOLVING,
    every caller awaits the same pending future. A failed attempt goes back
    to UNRESOLVED so the next caller starts over.
    """

    def __init__(self, provisioner, source_url: str):
        """
        Initialize resolver.

        Args:
            provisioner: Object exposing `async locate(source_url) -> str`
            source_url: Browser archive location handed to the provisioner
        """
        self.provisioner = provisioner
        self.source_url = source_url
        self.state = ResolverState.UNRESOLVED
        self._path: Optional[str] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def path(self) -> Optional[str]:
        """Cached executable path, None until resolved."""
        return self._path

    async def resolve(self) -> str:
        """
        Return the executable path, provisioning it on first use.

        Returns:
            Local path of the browser executable

        Raises:
            ResolutionError: The provisioning attempt failed
        """
        if self.state is ResolverState.RESOLVED:
            return self._path

        if self._pending is None:
            logger.info(f"Resolving browser executable from {self.source_url}")
            self.state = ResolverState.RESOLVING
            self._pending = asyncio.ensure_future(self._provision())
            self._pending.add_done_callback(_retrieve_exception)
        else:
            logger.debug("Executable resolution in progress, waiting")

        # Cancelling one waiter must not cancel the shared attempt
        return await asyncio.shield(self._pending)

    async def _provision(self) -> str:
        try:
            path = await self.provisioner.locate(self.source_url)
        except Exception as e:
            logger.error(f"Failed to resolve browser executable: {e}")
            self.state = ResolverState.UNRESOLVED
            self._pending = None
            raise ResolutionError(f"Failed to resolve browser executable: {e}") from e

        self._path = path
        self.state = ResolverState.RESOLVED
        self._pending = None
        logger.info(f"Browser executable resolved: {path}")
        return path


# Singleton instance
_resolver = None


def get_executable_resolver() -> ExecutableResolver:
    """Get process-wide executable resolver."""
    global _resolver
    if _resolver is None:
        provisioner = ChromiumProvisioner(CHROMIUM_CACHE_DIR, timeout=CHROMIUM_DOWNLOAD_TIMEOUT)
        _resolver = ExecutableResolver(provisioner, CHROMIUM_PACK_URL)
    return _resolver
