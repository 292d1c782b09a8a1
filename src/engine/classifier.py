"""Error Classifier - 실패 원인 분류 (순수 함수)

에러 메시지(와 현재 연결 모드)만 보고 카테고리를 결정합니다. 상태가 없으므로
같은 입력은 항상 같은 결과를 반환합니다.

- BLOCKED: 봇 차단 / HTTP2 프레이밍 계층 간섭 → 프록시 전환 대상
- PROXY_ERROR: 프록시 모드에서의 네비게이션 타임아웃, 명시적 프록시 연결 실패
- UNCLASSIFIED: 그 외 (재시도하지 않음)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from src.core.exceptions import BlockedError, ProxyError, RankAgentException
from src.utils.resource_loader import load_error_signatures


class ConnectionMode(str, Enum):
    """네트워크 경로"""

    DIRECT = "direct"  # local 직접 연결
    PROXIED = "proxied"  # 프록시 경유


class ErrorCategory(str, Enum):
    """실패 분류"""

    BLOCKED = "blocked"
    PROXY_ERROR = "proxy_error"
    UNCLASSIFIED = "unclassified"

    @property
    def is_retryable(self) -> bool:
        return self is not ErrorCategory.UNCLASSIFIED


def classify_error(message: Optional[str], mode: ConnectionMode = ConnectionMode.DIRECT) -> ErrorCategory:
    """에러 메시지 → 카테고리

    Args:
        message: 예외 메시지 (str(exc))
        mode: 에러 발생 시점의 연결 모드

    Returns:
        ErrorCategory
    """
    if not message:
        return ErrorCategory.UNCLASSIFIED

    signatures = load_error_signatures()

    if any(sig in message for sig in signatures["blocked"]):
        return ErrorCategory.BLOCKED

    if any(sig in message for sig in signatures["proxy_failure"]):
        return ErrorCategory.PROXY_ERROR

    if mode is ConnectionMode.PROXIED and any(sig in message for sig in signatures["navigation_timeout"]):
        return ErrorCategory.PROXY_ERROR

    return ErrorCategory.UNCLASSIFIED


def classify_exception(exc: BaseException, mode: ConnectionMode = ConnectionMode.DIRECT) -> ErrorCategory:
    """예외 객체 분류 - 타입이 명확하면 타입 우선, 아니면 메시지 기반

    자체 예외는 메시지에 키워드 등 사용자 데이터가 섞이므로 메시지로 분류하지 않습니다.
    """
    if isinstance(exc, BlockedError):
        return ErrorCategory.BLOCKED
    if isinstance(exc, ProxyError):
        return ErrorCategory.PROXY_ERROR
    if isinstance(exc, RankAgentException):
        return ErrorCategory.UNCLASSIFIED
    return classify_error(str(exc), mode)
