"""Capture screenshots of HTML content through the Chrome DevTools Protocol."""

__version__ = "0.1.22"