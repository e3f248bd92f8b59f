"""
Crawler Package - Media URL Extraction

Contains the extraction pipeline:
- ExecutableResolver: Single-flight browser binary resolution
- BrowserManager: Per-request Playwright sessions
- NetworkMonitor: Request/response media classification
- Navigator: Page load with blank-page retries
- DOMExtractor: Video/source/iframe scan
- VideoCrawler: Request boundary tying the stages together
"""

from .aggregator import aggregate, is_absolute_url
from .browser_manager import BrowserManager, CrawlSession
from .dom_extractor import DOMExtractor
from .executable_resolver import ExecutableResolver, ResolutionError, get_executable_resolver
from .navigator import Navigator, NavigationOutcome
from .network_monitor import CandidateSet, NetworkMonitor
from .provisioner import ChromiumProvisioner, ProvisioningError
from .video_crawler import ExtractionResult, VideoCrawler, extract_videos

__all__ = [
    'aggregate',
    'is_absolute_url',
    'BrowserManager',
    'CrawlSession',
    'DOMExtractor',
    'ExecutableResolver',
    'ResolutionError',
    'get_executable_resolver',
    'Navigator',
    'NavigationOutcome',
    'CandidateSet',
    'NetworkMonitor',
    'ChromiumProvisioner',
    'ProvisioningError',
    'ExtractionResult',
    'VideoCrawler',
    'extract_videos',
]
