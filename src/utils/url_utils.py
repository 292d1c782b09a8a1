"""URL 파싱 유틸리티"""
import re
from typing import Iterable, NamedTuple, Optional
from urllib.parse import parse_qs, quote, urlparse


COUPANG_BASE_URL = "https://www.coupang.com"
SEARCH_URL_TEMPLATE = (
    COUPANG_BASE_URL
    + "/np/search?q={keyword}&channel=user&failRedirectApp=true&page={page}&listSize={list_size}"
)

_PRODUCT_ID_PATTERN = re.compile(r"/vp/products/(\d+)")
_ITEM_ID_PATTERN = re.compile(r"itemId=(\d+)")
_VENDOR_ITEM_ID_PATTERN = re.compile(r"vendorItemId=(\d+)")


class ProductIds(NamedTuple):
    """상품 링크에서 추출한 식별자 묶음"""

    product_id: Optional[str]
    item_id: Optional[str]
    vendor_item_id: Optional[str]


def build_search_url(keyword: str, page: int = 1, list_size: int = 72) -> str:
    """쿠팡 검색 URL 생성 (URL 직접 이동 방식)"""
    return SEARCH_URL_TEMPLATE.format(keyword=quote(keyword, safe=""), page=page, list_size=list_size)


def extract_product_ids(href: Optional[str]) -> ProductIds:
    """
    쿠팡 상품 링크에서 productId / itemId / vendorItemId 추출

    Examples:
        >>> extract_product_ids("/vp/products/111?itemId=222&vendorItemId=333")
        ProductIds(product_id='111', item_id='222', vendor_item_id='333')
        >>> extract_product_ids("")
        ProductIds(product_id=None, item_id=None, vendor_item_id=None)

    Args:
        href: 상품 링크 (상대/절대)

    Returns:
        ProductIds (없는 값은 None)
    """
    if not href:
        return ProductIds(None, None, None)

    product = _PRODUCT_ID_PATTERN.search(href)
    item = _ITEM_ID_PATTERN.search(href)
    vendor_item = _VENDOR_ITEM_ID_PATTERN.search(href)
    return ProductIds(
        product.group(1) if product else None,
        item.group(1) if item else None,
        vendor_item.group(1) if vendor_item else None,
    )


def get_query_param(url: str, name: str) -> Optional[str]:
    """URL query string에서 단일 파라미터 값 반환"""
    if not url:
        return None
    try:
        values = parse_qs(urlparse(url).query).get(name)
    except ValueError:
        return None
    return values[0] if values else None


def normalize_href(href: str, base_url: str = COUPANG_BASE_URL) -> str:
    """상대/프로토콜-상대 href를 절대 URL로 정규화합니다.

    - "//host/path" -> "https://host/path"
    - "/path" -> "{base_url}/path"
    - "http(s)://..." -> 그대로
    """
    if not href:
        return ""

    h = href.strip()
    if not h:
        return ""

    if h.startswith("//"):
        return f"https:{h}"

    if h.startswith("/"):
        return f"{base_url}{h}"

    return h


def matches_domain(url: str, patterns: Iterable[str]) -> bool:
    """호스트명이 패턴 목록 중 하나와 일치하는지 (와일드카드 지원)

    - "www.coupang.com": 정확히 일치
    - "*.coupang.com": 서브도메인 및 자기 자신
    - "image*.coupangcdn.com": 임의 위치 와일드카드
    """
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return False
    if not hostname:
        return False

    for pattern in patterns:
        if pattern == hostname:
            return True
        if pattern.startswith("*."):
            domain = pattern[2:]
            if hostname == domain or hostname.endswith("." + domain):
                return True
            continue
        if "*" in pattern:
            regex = "^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$"
            if re.match(regex, hostname):
                return True
    return False


def has_blocked_extension(url: str, extensions: Iterable[str]) -> bool:
    """URL path가 차단 확장자로 끝나는지"""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return any(path.endswith(ext.lower()) for ext in extensions)
