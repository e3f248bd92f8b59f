"""
Configuration - Video Grabber

Loads environment variables and crawler policy.
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Deployment environment
# Restricted serverless hosts cannot ship a bundled browser and fetch one at runtime
SERVERLESS_ENV = os.getenv('SERVERLESS_ENV', '').lower() in ('1', 'true', 'yes')
PRODUCTION_URL = os.getenv('PRODUCTION_URL', '')

# Chromium archive served next to the deployment, public fallback otherwise
DEFAULT_CHROMIUM_PACK_URL = (
    'https://github.com/nichanunez/puppeteer-on-vercel/raw/refs/heads/main/'
    'example/chromium-dont-use-in-prod.tar'
)
if PRODUCTION_URL:
    CHROMIUM_PACK_URL = f'https://{PRODUCTION_URL}/chromium-pack.tar'
else:
    CHROMIUM_PACK_URL = os.getenv('CHROMIUM_PACK_URL', DEFAULT_CHROMIUM_PACK_URL)

CHROMIUM_CACHE_DIR = os.getenv('CHROMIUM_CACHE_DIR', '/tmp/chromium')
CHROMIUM_DOWNLOAD_TIMEOUT = int(os.getenv('CHROMIUM_DOWNLOAD_TIMEOUT', '120'))  # seconds

# Playwright / Browser settings
BROWSER_HEADLESS = os.getenv('BROWSER_HEADLESS', 'true').lower() == 'true'
VIEWPORT = {'width': 1920, 'height': 1080}
USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

# Navigation policy (fixed, not per request)
MAX_ATTEMPTS = 3
NAVIGATION_TIMEOUT = 45000  # ms
SELECTOR_TIMEOUT = 10000  # ms
ROOT_SELECTOR = 'body'
BLANK_TEXT_THRESHOLD = 50  # characters
RELOAD_PAUSE = 2  # seconds
SETTLE_DELAY = 5  # seconds

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
