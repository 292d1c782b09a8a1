"""Coupang search-result rank locator."""

from .locator import PageWindow, TargetLocator, find_target
from .parsing import ListingEntry
from .reader import HtmlPageReader, PageReader, PageSnapshot

__all__ = [
    "TargetLocator",
    "PageWindow",
    "find_target",
    "ListingEntry",
    "PageReader",
    "HtmlPageReader",
    "PageSnapshot",
]
