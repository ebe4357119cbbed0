"""Bidirectional CardDAV contact sync for Markdown note collections."""

__version__ = "0.3.0"
