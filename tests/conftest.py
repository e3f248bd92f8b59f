"""
Pytest configuration for Video Grabber tests.
"""

import os
import sys
from unittest.mock import AsyncMock, Mock, patch

# Set test environment variables BEFORE any imports
os.environ['SERVERLESS_ENV'] = 'false'
os.environ['LOG_LEVEL'] = 'DEBUG'

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture
def mock_page():
    """Playwright page double whose calls all succeed."""
    page = Mock()
    page.goto = AsyncMock()
    page.reload = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.evaluate = AsyncMock(return_value='x' * 200)
    page.route = AsyncMock()
    page.on = Mock()
    return page


@pytest.fixture
def mock_session(mock_page):
    """Open crawl session around the mock page."""
    from video_grabber.crawler.browser_manager import CrawlSession

    return CrawlSession(
        target_url='https://example.com/watch',
        playwright=Mock(stop=AsyncMock()),
        browser=Mock(close=AsyncMock()),
        context=Mock(close=AsyncMock()),
        page=mock_page,
    )


@pytest.fixture
def no_sleep():
    """Skip reload pauses and settle delays."""
    with patch('video_grabber.crawler.navigator.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep
