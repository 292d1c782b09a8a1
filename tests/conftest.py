"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Dummy/Fake 주입 (렌더링 세션, 프록시 목록)

금지:
- 실제 브라우저/네트워크 접근
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Any, Optional

import pytest
from selectolax.parser import HTMLParser


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.utils.url_utils import get_query_param  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


_PAGE_IN_SELECTOR = re.compile(r'data-page="(\d+)"')


class FakeRenderSession:
    """페이지 번호 → HTML 매핑으로 동작하는 RenderSession

    - navigate: URL의 page 파라미터로 현재 페이지 결정
    - click('a[data-page="N"]'): 해당 페이지가 있으면 이동 (stuck=True면 이동 안 함)
    - wait_for_condition: 현재 URL의 page 파라미터 비교
    - *_error: 해당 호출에서 예외 발생 (Playwright 실패 재현)
    """

    def __init__(
        self,
        pages: dict[int, str],
        *,
        title: str = "쿠팡!",
        redirect_url: Optional[str] = None,
        navigate_error: Optional[BaseException] = None,
        stuck: bool = False,
        click_error: Optional[BaseException] = None,
        button_check_error: Optional[BaseException] = None,
        condition_error: Optional[BaseException] = None,
    ):
        self.pages = pages
        self._title = title
        self.redirect_url = redirect_url
        self.navigate_error = navigate_error
        self.stuck = stuck
        self.click_error = click_error
        self.button_check_error = button_check_error
        self.condition_error = condition_error

        self.url = ""
        self.current_page = 1
        self.calls: list[tuple[str, Any]] = []
        self.route_handler = None

    @property
    def html(self) -> str:
        return self.pages.get(self.current_page, "")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def navigate(self, url: str, wait_until: str = "load", timeout_ms: int = 40000) -> None:
        self.calls.append(("navigate", url))
        if self.navigate_error is not None:
            raise self.navigate_error
        self.url = self.redirect_url or url
        self.current_page = int(get_query_param(url, "page") or 1)

    def current_url(self) -> str:
        return self.url

    async def title(self) -> str:
        return self._title

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", arg))
        if "outerHTML" in expression:
            return self.html
        if "querySelector(selector)" in expression:
            if self.button_check_error is not None:
                raise self.button_check_error
            return HTMLParser(self.html).css_first(arg) is not None
        return None

    async def wait_for_marker(self, selector: str, timeout_ms: int) -> bool:
        self.calls.append(("wait_for_marker", selector))
        return HTMLParser(self.html).css_first(selector) is not None

    async def wait_for_condition(self, predicate: str, arg: Any, timeout_ms: int) -> bool:
        self.calls.append(("wait_for_condition", arg))
        if self.condition_error is not None:
            raise self.condition_error
        return get_query_param(self.url, "page") == str(arg)

    async def click(self, selector: str, delay_ms: int = 100) -> None:
        self.calls.append(("click", selector))
        if self.click_error is not None:
            raise self.click_error
        m = _PAGE_IN_SELECTOR.search(selector)
        if not m or self.stuck:
            return
        target = int(m.group(1))
        if target in self.pages:
            self.current_page = target
            self.url = re.sub(r"page=\d+", f"page={target}", self.url)

    async def hover(self, selector: str) -> None:
        self.calls.append(("hover", selector))

    async def intercept_requests(self, handler) -> None:
        self.route_handler = handler


class FakeSessionFactory:
    """new_session 호출 시 프록시 인자를 기록하는 SessionFactory"""

    def __init__(self, make_session=None, launch_error: Optional[BaseException] = None):
        self.make_session = make_session or (lambda: FakeRenderSession({}))
        self.launch_error = launch_error
        self.proxies: list[Optional[str]] = []
        self.closed = 0

    async def new_session(self, proxy: Optional[str] = None):
        if self.launch_error is not None:
            raise self.launch_error
        self.proxies.append(proxy)
        return self.make_session()

    async def close_session(self) -> None:
        self.closed += 1


class StaticProxyDirectory:
    """고정 목록을 반환하는 ProxyDirectory (error 지정 시 예외)"""

    def __init__(self, proxies: Optional[list[str]] = None, error: Optional[BaseException] = None):
        self.proxies = list(proxies or [])
        self.error = error
        self.calls = 0

    async def fetch_proxies(self) -> list[str]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.proxies)


@pytest.fixture
def fake_session_cls():
    return FakeRenderSession


@pytest.fixture
def fake_factory_cls():
    return FakeSessionFactory


@pytest.fixture
def proxy_directory_cls():
    return StaticProxyDirectory
