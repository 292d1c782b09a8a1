"""텍스트/숫자 추출 헬퍼.

검색 결과 카드의 가격·할인율·평점 텍스트는 "12,900원", "10%", "(1,234)" 처럼
기호가 섞여 있어 여기서 숫자만 뽑아냅니다. 실패 시 None을 반환합니다.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

_NUMBER_CHARS = re.compile(r"[^\d.]")
_DECIMAL = re.compile(r"(\d+(?:\.\d+)?)")
_INTEGER = re.compile(r"(\d+)")
_WHITESPACE = re.compile(r"\s+")

# "(1세트당 1,770원)" / "(100g당 590원)"
_UNIT_PRICE_PATTERN = re.compile(r"\(([^()]*?당)\s*([\d,]+)\s*원\)")


def collapse_whitespace(text: Optional[str]) -> str:
    """연속 공백/개행을 한 칸으로"""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def to_number(text: Optional[str]) -> Optional[int]:
    """숫자 이외 문자를 제거한 정수. "12,900원" -> 12900

    소수점이 포함되면 버림. 숫자가 없으면 None.
    """
    if not text:
        return None
    digits = _NUMBER_CHARS.sub("", str(text))
    if not digits:
        return None
    try:
        return int(float(digits))
    except ValueError:
        return None


def extract_decimal(text: Optional[str]) -> Optional[float]:
    """첫 번째 실수값. "4.5" -> 4.5"""
    if not text:
        return None
    m = _DECIMAL.search(text)
    return float(m.group(1)) if m else None


def extract_count(text: Optional[str]) -> Optional[int]:
    """괄호/콤마가 섞인 개수 텍스트. "(1,234)" -> 1234"""
    if not text:
        return None
    m = _INTEGER.search(text.replace(",", ""))
    return int(m.group(1)) if m else None


def parse_unit_price(text: Optional[str]) -> Optional[tuple[str, int]]:
    """단가 표기 "(<label>당 N원)" 파싱.

    Returns:
        (unit_label, unit_price) 또는 None
    """
    if not text:
        return None
    m = _UNIT_PRICE_PATTERN.search(collapse_whitespace(text))
    if not m:
        return None
    try:
        return m.group(1).strip(), int(m.group(2).replace(",", ""))
    except ValueError:
        return None


def detect_keywords(text: Optional[str], keywords: Iterable[str]) -> list[str]:
    """키워드 목록 중 text에 부분 문자열로 포함된 것 (키워드 순서, 중복 제거)"""
    if not text:
        return []
    found: list[str] = []
    for kw in keywords:
        if kw and kw in text and kw not in found:
            found.append(kw)
    return found


def contains_any(text: Optional[str], markers: Iterable[str]) -> bool:
    if not text:
        return False
    return any(m and m in text for m in markers)
