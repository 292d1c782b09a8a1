"""TargetLocator 테스트 (FakeRenderSession 기반, 브라우저 불필요)"""
import pytest

from src.core.exceptions import BlockedError, ListNotFoundError, PaginationError
from src.crawlers.coupang.locator import PageWindow, TargetLocator, find_target
from src.crawlers.coupang.reader import HtmlPageReader
from src.crawlers.coupang import parsing
from src.schemas.rank_schema import SearchTask
from tests.fixtures import (
    EMPTY_PAGE,
    ERROR_PAGE,
    LISTING_PAGE_1,
    LISTING_PAGE_2,
    NO_RESULT_PAGE,
)


def make_task(target_code, **kwargs):
    return SearchTask(id=1, keyword="무선이어폰", target_code=target_code, **kwargs)


@pytest.fixture
def locator():
    return TargetLocator(
        page_size=72,
        max_pages=10,
        page_load_delay_ms=0,
        page_navigation_delay_ms=0,
        scroll_settle_ms=0,
        hover_settle_ms=0,
    )


@pytest.fixture
def listing_session(fake_session_cls):
    return fake_session_cls({1: LISTING_PAGE_1, 2: LISTING_PAGE_2})


class TestPageWindow:
    @pytest.mark.parametrize("page_index", range(1, 11))
    @pytest.mark.parametrize("local_rank", [1, 2, 36, 72])
    def test_global_rank(self, page_index, local_rank):
        window = PageWindow(page_index, 72)
        assert window.global_rank(local_rank) == (page_index - 1) * 72 + local_rank
        assert window.global_rank(local_rank) > 0

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            PageWindow(0)
        with pytest.raises(ValueError):
            PageWindow(1).global_rank(0)

    def test_next(self):
        assert PageWindow(3).next() == PageWindow(4)


class TestFindTarget:
    @pytest.fixture(scope="class")
    def entries(self):
        return parsing.parse_entries(parsing.parse_html(LISTING_PAGE_1))

    def test_primary_match(self, entries):
        match = find_target(entries, make_task("101"))
        assert match.local_rank == 1
        assert not match.by_fallback

    def test_fallback_match_on_item_id(self, entries):
        match = find_target(entries, make_task("222"))
        assert match.entry.primary_id == "111"
        assert match.local_rank == 2
        assert match.by_fallback

    def test_fallback_match_on_vendor_item_id(self, entries):
        match = find_target(entries, make_task("333"))
        assert match.entry.data_id == "111"

    def test_task_secondary_codes(self, entries):
        match = find_target(entries, make_task("000", vendor_item_id="6662"))
        assert match.entry.data_id == "666"
        assert match.local_rank == 4

    def test_ad_entry_is_skipped(self, entries):
        match = find_target(entries, make_task("555"))
        assert not match.entry.is_ad
        assert match.local_rank == 3

    def test_ad_only_target_never_matches(self, entries):
        assert find_target(entries, make_task("777")) is None


class TestLocate:
    @pytest.mark.asyncio
    async def test_found_on_first_page(self, locator, listing_session):
        record = await locator.locate(make_task("222"), listing_session)

        assert record.rank == 2
        assert record.name == "무선 이어폰 블루투스 5.3"
        assert record.sale_price == 29900
        assert "click" not in listing_session.call_names()

        navigate_url = listing_session.calls[0][1]
        assert navigate_url.startswith("https://www.coupang.com/np/search?q=")
        assert "page=1" in navigate_url and "listSize=72" in navigate_url

    @pytest.mark.asyncio
    async def test_sold_out_record(self, locator, listing_session):
        record = await locator.locate(make_task("666"), listing_session)

        assert record.rank == 4
        assert record.sold_out is True
        assert record.sale_price is None
        assert record.list_price is None
        assert record.unit_price is None
        assert record.name == "품절 상품 이어폰"
        assert record.rating == 4.0
        assert record.delivery_badge_keys == ["rocket-fresh"]

    @pytest.mark.asyncio
    async def test_found_on_second_page(self, locator, listing_session):
        record = await locator.locate(make_task("202"), listing_session)

        assert record.rank == 72 + 2
        assert record.sale_price == 8800
        names = listing_session.call_names()
        assert names.index("hover") < names.index("click") < names.index("wait_for_condition")

    @pytest.mark.asyncio
    async def test_not_found_when_no_next_button(self, locator, listing_session):
        record = await locator.locate(make_task("777"), listing_session)

        assert record.rank == 0
        assert record.to_product_data() == {}
        assert listing_session.current_page == 2

    @pytest.mark.asyncio
    async def test_max_pages_limits_scan(self, listing_session):
        locator = TargetLocator(
            max_pages=1,
            page_load_delay_ms=0,
            page_navigation_delay_ms=0,
            scroll_settle_ms=0,
            hover_settle_ms=0,
        )
        record = await locator.locate(make_task("202"), listing_session)

        assert record.rank == 0
        assert "click" not in listing_session.call_names()

    @pytest.mark.asyncio
    async def test_no_result_marker_skips_pagination(self, locator, fake_session_cls):
        session = fake_session_cls({1: NO_RESULT_PAGE})

        record = await locator.locate(make_task("101"), session)

        assert record.rank == 0
        names = session.call_names()
        assert "wait_for_marker" not in names
        assert "click" not in names

    @pytest.mark.asyncio
    async def test_error_page_raises_blocked(self, locator, fake_session_cls):
        session = fake_session_cls({1: ERROR_PAGE}, title="Problem loading page")
        with pytest.raises(BlockedError):
            await locator.locate(make_task("101"), session)

    @pytest.mark.asyncio
    async def test_missing_list_with_error_url_raises_blocked(self, locator, fake_session_cls):
        session = fake_session_cls({1: EMPTY_PAGE}, redirect_url="https://www.coupang.com/error/403")
        with pytest.raises(BlockedError):
            await locator.locate(make_task("101"), session)

    @pytest.mark.asyncio
    async def test_missing_list_raises_list_not_found(self, locator, fake_session_cls):
        session = fake_session_cls({1: EMPTY_PAGE})
        with pytest.raises(ListNotFoundError):
            await locator.locate(make_task("101"), session)

    @pytest.mark.asyncio
    async def test_unconfirmed_pagination_stops_search(self, locator, fake_session_cls):
        session = fake_session_cls({1: LISTING_PAGE_1, 2: LISTING_PAGE_2}, stuck=True)

        record = await locator.locate(make_task("202"), session)

        assert record.rank == 0
        assert session.current_page == 1

    @pytest.mark.asyncio
    async def test_click_failure_stops_search(self, locator, fake_session_cls):
        session = fake_session_cls(
            {1: LISTING_PAGE_1, 2: LISTING_PAGE_2},
            click_error=RuntimeError("element is not visible"),
        )
        record = await locator.locate(make_task("202"), session)
        assert record.rank == 0

    @pytest.mark.asyncio
    async def test_confirmation_wait_error_stops_search(self, locator, fake_session_cls):
        """클릭으로 시작된 네비게이션 중 대기가 실패해도 rank=0으로 종료"""
        session = fake_session_cls(
            {1: LISTING_PAGE_1, 2: LISTING_PAGE_2},
            condition_error=RuntimeError("Execution context was destroyed, most likely because of a navigation"),
        )

        record = await locator.locate(make_task("202"), session)

        assert record.rank == 0
        assert "click" in session.call_names()
        assert session.call_names()[-1] == "wait_for_condition"

    @pytest.mark.asyncio
    async def test_button_check_error_stops_search(self, locator, fake_session_cls):
        session = fake_session_cls(
            {1: LISTING_PAGE_1, 2: LISTING_PAGE_2},
            button_check_error=RuntimeError("Target page, context or browser has been closed"),
        )

        record = await locator.locate(make_task("202"), session)

        assert record.rank == 0
        assert "click" not in session.call_names()
        assert session.current_page == 1

    @pytest.mark.asyncio
    async def test_pagination_step_errors_become_pagination_error(self, locator, fake_session_cls):
        cause = RuntimeError("Execution context was destroyed")
        session = fake_session_cls({1: LISTING_PAGE_1, 2: LISTING_PAGE_2}, condition_error=cause)
        await session.navigate("https://www.coupang.com/np/search?q=a&page=1")

        with pytest.raises(PaginationError) as exc_info:
            await locator._go_to_page(session, 2)

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.details["target_page"] == 2

    @pytest.mark.asyncio
    async def test_navigation_error_propagates(self, locator, fake_session_cls):
        session = fake_session_cls({}, navigate_error=RuntimeError("net::ERR_HTTP2_PROTOCOL_ERROR"))
        with pytest.raises(RuntimeError, match="ERR_HTTP2_PROTOCOL_ERROR"):
            await locator.locate(make_task("101"), session)


class TestHtmlPageReader:
    @pytest.mark.asyncio
    async def test_snapshot_of_no_result_page(self, fake_session_cls):
        session = fake_session_cls({1: NO_RESULT_PAGE})
        await session.navigate("https://www.coupang.com/np/search?q=a&page=1")

        snapshot = await HtmlPageReader().snapshot(session)

        assert snapshot.no_result is True
        assert not snapshot.has_error_signature
        assert snapshot.url.endswith("page=1")
        assert session.call_names().count("evaluate") == 1

    @pytest.mark.asyncio
    async def test_snapshot_of_error_page(self, fake_session_cls):
        session = fake_session_cls({1: ERROR_PAGE}, title="Problem loading page")

        snapshot = await HtmlPageReader().snapshot(session)

        assert snapshot.has_error_signature

    @pytest.mark.asyncio
    async def test_read_entries_keeps_ads_in_display_order(self, listing_session):
        reader = HtmlPageReader()

        entries = await reader.read_entries(listing_session)

        assert [e.position for e in entries] == list(range(1, len(entries) + 1))
        assert entries[0].is_ad
        assert not entries[1].is_ad
        assert entries[1].primary_id == "101"
