"""테스트 자산(데이터) 레이어

규칙:
- 로직 없음 (단순 문자열/dict/list)
- 엔진/네트워크 의존 없음
"""

from .coupang_pages import (
    EMPTY_PAGE,
    ERROR_PAGE,
    LISTING_PAGE_1,
    LISTING_PAGE_2,
    NO_RESULT_PAGE,
    NO_RESULT_TEXT_ONLY_PAGE,
)
from .api_payloads import ASSIGN_PAYLOADS, PROXY_LIST_PAYLOADS

__all__ = [
    "LISTING_PAGE_1",
    "LISTING_PAGE_2",
    "NO_RESULT_PAGE",
    "NO_RESULT_TEXT_ONLY_PAGE",
    "ERROR_PAGE",
    "EMPTY_PAGE",
    "ASSIGN_PAYLOADS",
    "PROXY_LIST_PAYLOADS",
]
