"""Coupang rank crawler modules (render session + locator).

공개 API는 이 파일에서만 export합니다.
"""

from .session import RenderSession, SessionFactory
from .coupang import TargetLocator, PageWindow, HtmlPageReader, PageReader

__all__ = [
        "RenderSession",
        "SessionFactory",
        "TargetLocator",
        "PageWindow",
        "HtmlPageReader",
        "PageReader",
]
