"""CardDAV protocol client and vCard translation."""

from .async_utils import run_sync
from .client import CardDAVClient

__all__ = ["CardDAVClient", "run_sync"]
