"""Playwright page 설정/보조 함수.

리소스 필터링(라우팅) 규칙을 분리합니다. 차단 대상 요청은 abort 대신
리소스 타입별 작은 대체 응답으로 fulfill 합니다 (abort 시 일부 스크립트가
에러 경로로 빠지는 것을 방지).
"""

from __future__ import annotations

import base64
from typing import Any

from src.core.logging import logger
from src.utils.resource_loader import load_resource_filter
from src.utils.url_utils import has_blocked_extension, matches_domain


_CONTENT_TYPES = {
    "image": "image/png",
    "stylesheet": "text/css",
    "script": "application/javascript",
    "font": "font/woff2",
}


def content_type_for(resource_type: str) -> str:
    return _CONTENT_TYPES.get(resource_type, "text/plain")


def replacement_body(resource_type: str, replacements: dict[str, str]) -> bytes:
    """리소스 타입별 대체 응답 본문 (이미지는 data URI의 base64 부분을 디코드)"""
    value = replacements.get(resource_type)
    if not value:
        return b""
    if resource_type == "image" and "," in value:
        try:
            return base64.b64decode(value.split(",", 1)[1])
        except ValueError:
            return b""
    return value.encode("utf-8")


def should_block(url: str, resource_type: str, rules: dict[str, Any]) -> bool:
    """차단 도메인 / 리소스 타입 / 확장자 중 하나라도 해당하면 True"""
    if matches_domain(url, rules["blocked_domains"]):
        return True
    if resource_type in rules["blocked_resource_types"]:
        return True
    return has_blocked_extension(url, rules["blocked_extensions"])


async def resource_filter_handler(route, request) -> None:
    """page.route("**/*") 핸들러"""
    rules = load_resource_filter()
    url = request.url or ""
    resource_type = request.resource_type or ""

    try:
        if should_block(url, resource_type, rules):
            await route.fulfill(
                status=200,
                content_type=content_type_for(resource_type),
                body=replacement_body(resource_type, rules["replacements"]),
            )
            return
        await route.continue_()
    except Exception as e:
        # 페이지 종료 중 라우트 처리 실패는 무시
        logger.debug(f"[Playwright] Route handling skipped: {type(e).__name__}")
