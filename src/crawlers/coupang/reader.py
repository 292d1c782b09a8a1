"""Page Reader - 렌더링된 페이지 → 항목 목록 / 필드

Locator의 매칭/추출 로직이 DOM 질의 방식(JS evaluate, HTML 파싱 등)에
의존하지 않도록 분리한 인터페이스입니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from src.crawlers.session import RenderSession

from . import parsing
from .parsing import ListingEntry


OUTER_HTML_EXPRESSION = "() => document.documentElement.outerHTML"


@dataclass
class PageSnapshot:
    """리스트 대기 전 페이지 상태 (에러/결과 없음 판단용)

    항목 목록은 리스트가 렌더링된 뒤 read_entries로 따로 읽습니다.
    """

    url: str
    title: str
    body_text: str
    no_result: bool

    @property
    def has_error_signature(self) -> bool:
        return parsing.has_error_signature(self.body_text, self.title)


class PageReader(Protocol):
    """페이지 리더 프로토콜

    구현 예시:
        class HtmlPageReader(PageReader):
            async def read_entries(self, session):
                html = await session.evaluate("() => document.documentElement.outerHTML")
                return parse_entries(HTMLParser(html))
    """

    async def snapshot(self, session: RenderSession) -> PageSnapshot:
        ...

    async def read_entries(self, session: RenderSession) -> list[ListingEntry]:
        """현재 페이지의 항목 (광고 포함, 표시 순서)"""
        ...

    def extract(self, entry: ListingEntry) -> dict[str, Any]:
        """항목의 ProductRecord 필드 (rank 제외)"""
        ...


class HtmlPageReader:
    """outerHTML을 selectolax로 파싱하는 기본 리더"""

    async def _tree(self, session: RenderSession):
        html = await session.evaluate(OUTER_HTML_EXPRESSION)
        return parsing.parse_html(html or "")

    async def snapshot(self, session: RenderSession) -> PageSnapshot:
        tree = await self._tree(session)
        body_text = parsing.visible_body_text(tree)
        return PageSnapshot(
            url=session.current_url(),
            title=await session.title(),
            body_text=body_text,
            no_result=parsing.has_no_result_marker(tree, body_text),
        )

    async def read_entries(self, session: RenderSession) -> list[ListingEntry]:
        return parsing.parse_entries(await self._tree(session))

    def extract(self, entry: ListingEntry) -> dict[str, Any]:
        return parsing.extract_fields(entry)
