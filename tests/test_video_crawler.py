"""
Tests for the extraction request boundary
"""

from contextlib import asynccontextmanager

import pytest
from unittest.mock import AsyncMock, Mock, patch

from video_grabber.config import RELOAD_PAUSE
from video_grabber.crawler.dom_extractor import DOMExtractor
from video_grabber.crawler.executable_resolver import ResolutionError
from video_grabber.crawler.navigator import NavigationOutcome, Navigator, NavState
from video_grabber.crawler.video_crawler import ExtractionResult, VideoCrawler, extract_videos


URL = 'https://example.com/watch'


class FakeBrowserManager:
    """Session manager double that counts opens and closes."""

    def __init__(self, session):
        self.crawl_session = session
        self.opened = 0
        self.closed = 0
        self.executable_paths = []

    @asynccontextmanager
    async def session(self, executable_path, target_url):
        self.opened += 1
        self.executable_paths.append(executable_path)
        try:
            yield self.crawl_session
        finally:
            self.closed += 1


def outcome(success=True, attempts=1):
    state = NavState.SUCCESS if success else NavState.FAILED
    return NavigationOutcome(success=success, attempts=attempts, reloads=attempts - 1, state=state)


class TestExtractionResult:
    """Test cases for ExtractionResult."""

    def test_success_dict(self):
        result = ExtractionResult(success=True, videos=['https://a.example/v.mp4'])

        assert result.status == 200
        assert result.to_dict() == {'success': True, 'videos': ['https://a.example/v.mp4']}

    def test_failure_dict(self):
        result = ExtractionResult.failure("URL is required", status=400)

        assert result.status == 400
        assert result.to_dict() == {'success': False, 'message': "URL is required"}


class TestVideoCrawler:
    """Test cases for VideoCrawler."""

    @pytest.fixture
    def browser(self, mock_session):
        return FakeBrowserManager(mock_session)

    @pytest.fixture
    def navigator(self):
        navigator = Mock()
        navigator.run = AsyncMock(return_value=outcome())
        return navigator

    @pytest.fixture
    def dom_extractor(self):
        extractor = Mock()
        extractor.extract = AsyncMock(return_value=[])
        return extractor

    @pytest.fixture
    def crawler(self, browser, navigator, dom_extractor):
        return VideoCrawler(
            browser_manager=browser,
            navigator=navigator,
            dom_extractor=dom_extractor,
            serverless=False,
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize('url', [None, '', '   ', 42])
    async def test_missing_url_rejected_without_session(self, crawler, browser, url):
        """Test bad input never opens a browser."""
        result = await crawler.extract(url)

        assert result.success is False
        assert result.status == 400
        assert result.message == "URL is required"
        assert browser.opened == 0

    @pytest.mark.asyncio
    async def test_network_and_dom_hits_combined(self, crawler, mock_page, navigator, dom_extractor):
        """Test listener captures and DOM sources end up in one result."""
        async def navigate(page, url, session=None):
            route = Mock()
            route.request.url = 'https://cdn.example.com/live/stream.m3u8?token=abc'
            route.continue_ = AsyncMock()
            handler = mock_page.route.await_args.args[1]
            await handler(route)
            return outcome()

        navigator.run.side_effect = navigate
        dom_extractor.extract.return_value = [
            'https://player.example.com/embed/1',
            'https://cdn.example.com/live/stream.m3u8?token=abc',
            '/relative.mp4',
        ]

        result = await crawler.extract(URL)

        assert result.success is True
        assert result.videos == [
            'https://cdn.example.com/live/stream.m3u8?token=abc',
            'https://player.example.com/embed/1',
        ]

    @pytest.mark.asyncio
    async def test_retry_exhaustion_is_degraded_success(self, crawler, browser, navigator, dom_extractor):
        """Test failed navigation still scans the DOM and succeeds."""
        navigator.run.return_value = outcome(success=False, attempts=3)
        dom_extractor.extract.return_value = ['https://cdn.example.com/a.mp4']

        result = await crawler.extract(URL)

        assert result.success is True
        assert result.videos == ['https://cdn.example.com/a.mp4']
        dom_extractor.extract.assert_awaited_once()
        assert browser.closed == 1

    @pytest.mark.asyncio
    async def test_teardown_once_when_navigation_raises(self, crawler, browser, navigator, dom_extractor):
        """Test an unrecoverable error closes the browser exactly once."""
        navigator.run.side_effect = RuntimeError("Target page, context or browser has been closed")

        result = await crawler.extract(URL)

        assert result.success is False
        assert result.status == 500
        assert "has been closed" in result.message
        assert browser.opened == 1
        assert browser.closed == 1
        dom_extractor.extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_local_uses_bundled_browser(self, crawler, browser):
        """Test non-serverless runs skip executable resolution."""
        await crawler.extract(URL)

        assert browser.executable_paths == [None]

    @pytest.mark.asyncio
    async def test_serverless_uses_resolved_executable(self, browser, navigator, dom_extractor):
        """Test serverless runs launch the provisioned binary."""
        resolver = Mock()
        resolver.resolve = AsyncMock(return_value='/tmp/chromium/chromium')
        crawler = VideoCrawler(browser, resolver, navigator, dom_extractor, serverless=True)

        result = await crawler.extract(URL)

        assert result.success is True
        assert browser.executable_paths == ['/tmp/chromium/chromium']

    @pytest.mark.asyncio
    async def test_provisioning_error_fails_request(self, browser, navigator, dom_extractor):
        """Test a resolution failure is reported without opening a browser."""
        resolver = Mock()
        resolver.resolve = AsyncMock(side_effect=ResolutionError("Failed to resolve browser executable: HTTP 404"))
        crawler = VideoCrawler(browser, resolver, navigator, dom_extractor, serverless=True)

        result = await crawler.extract(URL)

        assert result.success is False
        assert result.status == 500
        assert "HTTP 404" in result.message
        assert browser.opened == 0

    @pytest.mark.asyncio
    async def test_extract_videos_returns_dict(self):
        """Test the convenience wrapper returns the wire shape."""
        with patch('video_grabber.crawler.video_crawler.VideoCrawler.extract',
                   new_callable=AsyncMock,
                   return_value=ExtractionResult(success=True, videos=['https://a.example/v.mp4'])):
            result = await extract_videos(URL)

        assert result == {'success': True, 'videos': ['https://a.example/v.mp4']}

    @pytest.mark.asyncio
    async def test_candidates_accumulate_across_retries(self, browser, mock_page, no_sleep):
        """Test hits from a blank first attempt and the reload pause all survive."""
        first_hit = 'https://cdn.example.com/live/stream.m3u8?token=abc'
        pause_hit = 'https://media.example.com/get?id=42'
        gotos = []

        async def goto(url, **kwargs):
            gotos.append(url)
            if len(gotos) == 1:
                route = Mock()
                route.request.url = first_hit
                route.continue_ = AsyncMock()
                handler = mock_page.route.await_args.args[1]
                await handler(route)

        def sleep(seconds):
            if seconds == RELOAD_PAUSE:
                on_response = mock_page.on.call_args.args[1]
                on_response(Mock(url=pause_hit, headers={'content-type': 'video/mp4'}))

        mock_page.goto.side_effect = goto
        no_sleep.side_effect = sleep
        # blank text, rendered text, then the DOM scan
        mock_page.evaluate.side_effect = ['Loading...', 'x' * 200, []]

        crawler = VideoCrawler(
            browser_manager=browser,
            navigator=Navigator(),
            dom_extractor=DOMExtractor(),
            serverless=False,
        )
        result = await crawler.extract(URL)

        assert result.success is True
        assert len(gotos) == 2
        mock_page.reload.assert_awaited_once()
        assert result.videos == [first_hit, pause_hit]
