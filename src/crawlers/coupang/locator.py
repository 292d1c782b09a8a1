"""Target Locator - 쿠팡 검색 결과에서 대상 상품 순위 찾기

흐름:
1. 검색 URL 직접 이동 (page=1, listSize=72) → 로드 후 대기
2. 에러/차단 페이지 → BlockedError
3. 검색 결과 없음 → rank=0 (페이지 이동 없음)
4. 상품 리스트 대기 실패 → BlockedError (에러 페이지) / ListNotFoundError
5. 페이지별로 광고 제외 항목을 순서대로 매칭, 없으면 다음 페이지 버튼 클릭
6. max_pages까지 없으면 rank=0
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from src.core.config import settings
from src.core.exceptions import BlockedError, ListNotFoundError, PaginationError
from src.core.logging import logger
from src.crawlers.session import RenderSession
from src.schemas.rank_schema import ProductRecord, SearchTask
from src.utils.url_utils import build_search_url

from .parsing import PRODUCT_LIST_SELECTOR, ListingEntry, looks_like_error_page
from .reader import HtmlPageReader, PageReader


PAGE_BUTTON_SELECTOR = 'a[data-page="{page}"]'

_HAS_ELEMENT_EXPRESSION = "(selector) => !!document.querySelector(selector)"
_SCROLL_TO_PAGINATION_EXPRESSION = """() => {
    const pagination = document.querySelector('[class*="Pagination_pagination"]') ||
                       document.querySelector('.pagination') ||
                       document.querySelector('[class*="pagination"]');
    if (pagination) {
        pagination.scrollIntoView({ behavior: 'smooth', block: 'center' });
    }
}"""
_PAGE_PARAM_PREDICATE = """(pageNum) => {
    const params = new URLSearchParams(window.location.search);
    return params.get('page') === String(pageNum);
}"""


@dataclass(frozen=True)
class PageWindow:
    """검색 결과 페이지 하나 (page_index는 1부터)"""

    page_index: int
    page_size: int = 72

    def __post_init__(self):
        if self.page_index < 1:
            raise ValueError(f"page_index must be >= 1: {self.page_index}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1: {self.page_size}")

    def global_rank(self, local_rank: int) -> int:
        """(page_index - 1) * page_size + local_rank"""
        if local_rank < 1:
            raise ValueError(f"local_rank must be >= 1: {local_rank}")
        return (self.page_index - 1) * self.page_size + local_rank

    def next(self) -> "PageWindow":
        return PageWindow(self.page_index + 1, self.page_size)


@dataclass(frozen=True)
class EntryMatch:
    """매칭 결과"""

    entry: ListingEntry
    local_rank: int  # 광고 제외 순번
    by_fallback: bool


def find_target(entries: list[ListingEntry], task: SearchTask) -> Optional[EntryMatch]:
    """광고를 제외한 항목 중 처음으로 매칭되는 항목

    - 기본 매칭: data-id 또는 /vp/products/<id> == target_code
    - 보조 매칭: itemId / vendorItemId == target_code (또는 작업의 item_id / vendor_item_id)
    """
    fallback_codes = {task.target_code, *task.secondary_codes}
    local_rank = 0
    for entry in entries:
        if entry.is_ad:
            continue
        local_rank += 1
        if entry.matches_primary(task.target_code):
            return EntryMatch(entry, local_rank, by_fallback=False)
        if any(entry.matches_secondary(code) for code in fallback_codes):
            return EntryMatch(entry, local_rank, by_fallback=True)
    return None


class TargetLocator:
    """검색 결과 페이지를 순회하며 대상 상품 위치/정보 추출

    Usage:
        locator = TargetLocator()
        record = await locator.locate(task, session)
    """

    def __init__(
        self,
        reader: Optional[PageReader] = None,
        *,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
        list_wait_timeout_ms: Optional[int] = None,
        pagination_timeout_ms: Optional[int] = None,
        page_load_delay_ms: Optional[int] = None,
        page_navigation_delay_ms: Optional[int] = None,
        scroll_settle_ms: int = 1000,
        hover_settle_ms: int = 300,
    ):
        self.reader = reader or HtmlPageReader()
        self.page_size = page_size or settings.crawler_page_size
        self.max_pages = max_pages or settings.crawler_max_pages
        self.navigation_timeout_ms = navigation_timeout_ms or settings.crawler_timeout
        self.list_wait_timeout_ms = list_wait_timeout_ms or settings.crawler_wait_timeout
        self.pagination_timeout_ms = pagination_timeout_ms or settings.crawler_pagination_timeout
        self.page_load_delay_ms = (
            settings.crawler_page_load_delay_ms if page_load_delay_ms is None else page_load_delay_ms
        )
        self.page_navigation_delay_ms = (
            settings.crawler_page_navigation_delay_ms
            if page_navigation_delay_ms is None
            else page_navigation_delay_ms
        )
        self.scroll_settle_ms = scroll_settle_ms
        self.hover_settle_ms = hover_settle_ms

    async def locate(self, task: SearchTask, session: RenderSession) -> ProductRecord:
        """대상 상품 찾기

        Returns:
            ProductRecord (미발견 시 rank=0)

        Raises:
            BlockedError: 차단/에러 페이지
            ListNotFoundError: 상품 리스트가 나타나지 않음
            엔진 고유 예외: 네비게이션 실패 (메시지로 분류)
        """
        url = build_search_url(task.keyword, page=1, list_size=self.page_size)
        logger.info(f"[LOCATOR] Searching '{task.keyword}' for target={task.target_code}")
        await session.navigate(url, wait_until="load", timeout_ms=self.navigation_timeout_ms)
        await self._pause(self.page_load_delay_ms)

        snapshot = await self.reader.snapshot(session)
        if snapshot.has_error_signature:
            raise BlockedError("Error page detected")

        if snapshot.no_result:
            logger.info(f"[LOCATOR] No search results for '{task.keyword}'")
            return ProductRecord.not_found()

        if not await session.wait_for_marker(PRODUCT_LIST_SELECTOR, self.list_wait_timeout_ms):
            if looks_like_error_page(session.current_url(), await session.title()):
                raise BlockedError("Error page detected")
            raise ListNotFoundError(task.keyword)

        window = PageWindow(1, self.page_size)
        while True:
            entries = await self.reader.read_entries(session)
            match = find_target(entries, task)
            if match is not None:
                return self._build_record(window, match)

            organic = sum(1 for e in entries if not e.is_ad)
            logger.info(
                f"[LOCATOR] Page {window.page_index}: target not found "
                f"({organic} organic / {len(entries)} entries)"
            )

            if window.page_index >= self.max_pages:
                break

            try:
                moved = await self._go_to_page(session, window.page_index + 1)
            except PaginationError as e:
                logger.warning(f"[LOCATOR] {e}")
                return ProductRecord.not_found()
            if not moved:
                logger.info(f"[LOCATOR] No page {window.page_index + 1} button - last page reached")
                return ProductRecord.not_found()
            window = window.next()

        logger.info(f"[LOCATOR] Target not found within {self.max_pages} pages")
        return ProductRecord.not_found()

    def _build_record(self, window: PageWindow, match: EntryMatch) -> ProductRecord:
        rank = window.global_rank(match.local_rank)
        fields = self.reader.extract(match.entry)
        logger.info(
            f"[LOCATOR] Found rank={rank} (page {window.page_index}, #{match.local_rank}"
            f"{', fallback match' if match.by_fallback else ''})"
        )
        return ProductRecord(rank=rank, **fields)

    async def _go_to_page(self, session: RenderSession, target_page: int) -> bool:
        """페이지 버튼 클릭으로 이동 (버튼 없으면 False)

        버튼 확인 → 스크롤/hover/클릭 → page 파라미터 변경 대기까지 한 단계로 취급합니다.

        Raises:
            PaginationError: 이동 과정의 예외 또는 URL page 파라미터 변경 확인 실패
        """
        selector = PAGE_BUTTON_SELECTOR.format(page=target_page)
        try:
            if not await session.evaluate(_HAS_ELEMENT_EXPRESSION, selector):
                return False

            await session.evaluate(_SCROLL_TO_PAGINATION_EXPRESSION)
            await self._pause(self.scroll_settle_ms)
            await session.hover(selector)
            await self._pause(self.hover_settle_ms)
            await session.click(selector, delay_ms=100)

            confirmed = await session.wait_for_condition(
                _PAGE_PARAM_PREDICATE, target_page, self.pagination_timeout_ms
            )
        except Exception as e:
            raise PaginationError(target_page, f"{type(e).__name__}: {e}") from e

        if not confirmed:
            raise PaginationError(target_page, "page parameter did not change")

        await self._pause(self.page_navigation_delay_ms)
        logger.debug(f"[LOCATOR] Moved to page {target_page}")
        return True

    @staticmethod
    async def _pause(ms: int) -> None:
        if ms > 0:
            await asyncio.sleep(ms / 1000.0)
