"""공유 HTTP 클라이언트 (curl_cffi)

- 작업 API / 프록시 목록 API 호출마다 AsyncSession을 만들면 커넥션 오버헤드가
  커지므로 프로세스 단위로 세션을 재사용합니다.
- 앱 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, NamedTuple, Optional

from curl_cffi.requests import AsyncSession

from src.core.config import settings
from src.core.exceptions import NetworkException
from src.core.logging import logger


class JsonResponse(NamedTuple):
    status: int
    data: Any  # JSON 파싱 실패 시 None


def _decode(resp) -> JsonResponse:
    status = getattr(resp, "status_code", 0) or 0
    text = getattr(resp, "text", "") or ""
    try:
        data = json.loads(text) if text else None
    except ValueError:
        data = None
    return JsonResponse(status, data)


class SharedHttpClient:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[AsyncSession] = None

    async def _ensure_session(self) -> AsyncSession:
        async with self._lock:
            if self._session is not None:
                return self._session
            self._session = AsyncSession(
                headers=self.default_headers(),
                allow_redirects=True,
                trust_env=False,
            )
            return self._session

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": settings.api_user_agent,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def get_json(
        self,
        url: str,
        *,
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> JsonResponse:
        """GET → (status, json)

        Raises:
            NetworkException: 연결 실패/타임아웃 등 응답을 받지 못한 경우
        """
        sess = await self._ensure_session()
        try:
            resp = await sess.get(url, headers=headers, timeout=timeout_s)
        except Exception as e:
            logger.info(f"[HTTP_CLIENT] GET failed: {type(e).__name__}: {repr(e)}")
            raise NetworkException(f"GET {url} failed: {type(e).__name__}: {e}") from e
        return _decode(resp)

    async def post_json(
        self,
        url: str,
        payload: Any,
        *,
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> JsonResponse:
        """POST JSON → (status, json)

        Raises:
            NetworkException: 연결 실패/타임아웃 등 응답을 받지 못한 경우
        """
        sess = await self._ensure_session()
        try:
            resp = await sess.post(url, json=payload, headers=headers, timeout=timeout_s)
        except Exception as e:
            logger.info(f"[HTTP_CLIENT] POST failed: {type(e).__name__}: {repr(e)}")
            raise NetworkException(f"POST {url} failed: {type(e).__name__}: {e}") from e
        return _decode(resp)

    async def close(self) -> None:
        async with self._lock:
            if self._session is None:
                return
            try:
                await self._session.close()
            except Exception as e:
                logger.debug(f"[HTTP_CLIENT] Session close failed: {type(e).__name__}")
            self._session = None


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
