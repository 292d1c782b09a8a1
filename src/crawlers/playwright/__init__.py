"""Playwright render engine for the rank agent."""

from .browser import PlaywrightRenderSession, PlaywrightSessionFactory, build_proxy_option
from .pages import resource_filter_handler

__all__ = [
    "PlaywrightRenderSession",
    "PlaywrightSessionFactory",
    "build_proxy_option",
    "resource_filter_handler",
]
