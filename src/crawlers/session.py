"""Render Session Protocol - 렌더링 엔진 최소 기능 인터페이스

Locator는 이 인터페이스만 사용하며 구체 엔진(Playwright 등)에 의존하지 않습니다.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol


RequestHandler = Callable[[Any, Any], Awaitable[None]]


class RenderSession(Protocol):
    """렌더링 세션 프로토콜

    구현 예시:
        class PlaywrightRenderSession(RenderSession):
            async def navigate(self, url, wait_until="load", timeout_ms=40000):
                await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    """

    async def navigate(self, url: str, wait_until: str = "load", timeout_ms: int = 40000) -> None:
        """페이지 이동

        Raises:
            엔진 고유 예외 (메시지는 Error Classifier로 분류됨)
        """
        ...

    def current_url(self) -> str:
        ...

    async def title(self) -> str:
        ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """페이지 컨텍스트에서 JS 표현식 실행"""
        ...

    async def wait_for_marker(self, selector: str, timeout_ms: int) -> bool:
        """selector가 나타날 때까지 대기 (타임아웃 시 False)"""
        ...

    async def wait_for_condition(self, predicate: str, arg: Any, timeout_ms: int) -> bool:
        """JS 조건식이 참이 될 때까지 대기 (타임아웃 시 False)"""
        ...

    async def click(self, selector: str, delay_ms: int = 100) -> None:
        ...

    async def hover(self, selector: str) -> None:
        ...

    async def intercept_requests(self, handler: RequestHandler) -> None:
        """모든 요청에 대해 handler(route, request) 호출"""
        ...


class SessionFactory(Protocol):
    """세션 생성/정리 - 한 번에 하나의 세션만 유지"""

    async def new_session(self, proxy: Optional[str] = None) -> RenderSession:
        """기존 세션을 정리한 뒤 proxy 경로로 새 세션 생성

        Raises:
            BrowserException: 브라우저 실행 실패
        """
        ...

    async def close_session(self) -> None:
        """세션 정리 (실패는 로그만 남기고 무시)"""
        ...
