"""프록시 목록 API 클라이언트"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from src.core.config import settings
from src.core.exceptions import NetworkException, ProxyListUnavailable
from src.core.logging import logger
from src.crawlers.http_client import SharedHttpClient, get_shared_http_client


def normalize_proxy_entries(entries: Iterable[Any]) -> list[str]:
    """프록시 목록 정규화

    - 빈 줄 / '#' 주석 제거
    - scheme 없으면 http:// 추가
    - 순서 유지, 중복 제거

    Examples:
        >>> normalize_proxy_entries(["1.2.3.4:8080", "", "# off", "socks5://5.6.7.8:1080"])
        ['http://1.2.3.4:8080', 'socks5://5.6.7.8:1080']
    """
    proxies: list[str] = []
    for raw in entries:
        if raw is None:
            continue
        entry = str(raw).strip()
        if not entry or entry.startswith("#"):
            continue
        if "://" not in entry:
            entry = f"http://{entry}"
        if entry not in proxies:
            proxies.append(entry)
    return proxies


class HttpProxyDirectory:
    """GET {proxy_api_url} → {success, proxies:[...]}"""

    def __init__(
        self,
        api_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        http_client: Optional[SharedHttpClient] = None,
    ):
        self.api_url = api_url or settings.proxy_api_url
        self.timeout_s = timeout_s or settings.proxy_api_timeout_s
        self.http = http_client or get_shared_http_client()

    async def fetch_proxies(self) -> list[str]:
        """프록시 목록 조회

        Raises:
            ProxyListUnavailable: 요청 실패 / 응답 형식 오류 / 빈 목록
        """
        logger.info("[PROXY_DIR] Fetching proxy list")
        try:
            resp = await self.http.get_json(self.api_url, timeout_s=self.timeout_s)
        except NetworkException as e:
            raise ProxyListUnavailable(e.message) from e

        if resp.status != 200:
            raise ProxyListUnavailable(f"HTTP {resp.status}")

        data = resp.data
        if not isinstance(data, dict) or not data.get("success") or not isinstance(data.get("proxies"), list):
            raise ProxyListUnavailable("invalid proxy list response format")

        proxies = normalize_proxy_entries(data["proxies"])
        if not proxies:
            raise ProxyListUnavailable("proxy list is empty")

        logger.info(f"[PROXY_DIR] Loaded {len(proxies)} proxies")
        return proxies
