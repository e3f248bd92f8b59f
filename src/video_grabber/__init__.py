"""
Video Grabber

Headless-browser extraction of playable media URLs from web pages.
"""

__version__ = '0.1.0'
