#!/usr/bin/env python3
"""
Run Video Grabber

Usage:
    python run.py <page-url>
"""

import asyncio
import json
import logging
import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from video_grabber.config import LOG_LEVEL
from video_grabber.crawler import extract_videos

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)
logger = logging.getLogger(__name__)


def main():
    """Extract videos from the URL given on the command line."""
    url = sys.argv[1] if len(sys.argv) > 1 else ''

    result = asyncio.run(extract_videos(url))
    print(json.dumps(result, indent=2))

    return 0 if result.get('success') else 1


if __name__ == '__main__':
    sys.exit(main())
