"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


# 기본 예외 클래스
class RankAgentException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 크롤러 관련 예외
class CrawlerException(RankAgentException):
    """크롤러 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "CRAWLER_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CRAWLER_ERROR", details)


class BlockedError(CrawlerException):
    """봇 감지/차단 예외 (에러 페이지, HTTP/2 차단 등)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"BLOCKED: {reason}"
        super().__init__(message, "BLOCKED", details or {"reason": reason})


class ListNotFoundError(CrawlerException):
    """검색 결과 리스트를 찾을 수 없을 때 (차단 신호 없음)"""
    def __init__(self, keyword: str, details: Optional[dict[str, Any]] = None):
        message = f"Product list not found for keyword: {keyword}"
        super().__init__(message, "LIST_NOT_FOUND", details or {"keyword": keyword})


class PaginationError(CrawlerException):
    """다음 페이지 이동을 확인하지 못함"""
    def __init__(self, target_page: int, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to move to page {target_page}: {reason}"
        super().__init__(message, "PAGINATION_FAILED",
                        details or {"target_page": target_page, "reason": reason})


class BrowserException(CrawlerException):
    """브라우저 실행 오류"""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "BROWSER_ERROR", details)


# 네트워크 경로(프록시) 관련 예외
class NetworkException(RankAgentException):
    """네트워크 경로 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "NETWORK_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "NETWORK_ERROR", details)


class ProxyError(NetworkException):
    """프록시 연결 실패"""
    def __init__(self, proxy: Optional[str], reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Proxy failure ({proxy or 'none'}): {reason}"
        super().__init__(message, "PROXY_ERROR", details or {"proxy": proxy, "reason": reason})


class ProxyListUnavailable(NetworkException):
    """프록시 목록 API 조회 실패 또는 빈 목록"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Proxy list unavailable: {reason}"
        super().__init__(message, "PROXY_LIST_UNAVAILABLE", details or {"reason": reason})


class RetryBudgetExceeded(RankAgentException):
    """작업별 재시도 한도 초과"""
    def __init__(self, task_id: Any, retries: int, last_error: str, details: Optional[dict[str, Any]] = None):
        message = f"Retry budget exceeded for task {task_id} after {retries} retries: {last_error}"
        super().__init__(message, "RETRY_BUDGET_EXCEEDED",
                        details or {"task_id": task_id, "retries": retries, "last_error": last_error})


# 작업 API 관련 예외
class ApiException(RankAgentException):
    """작업 API 관련 예외"""
    def __init__(self, message: str, error_code: str = "API_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "API_ERROR", details)


class WorkSourceError(ApiException):
    """작업(키워드) 할당 요청 실패"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to fetch task: {reason}"
        super().__init__(message, "WORK_SOURCE_ERROR", details or {"reason": reason})


class ResultDeliveryError(ApiException):
    """결과 전송 실패"""
    def __init__(self, task_id: Any, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to deliver result for task {task_id}: {reason}"
        super().__init__(message, "RESULT_DELIVERY_ERROR",
                        details or {"task_id": task_id, "reason": reason})


# 유효성 검증 관련 예외
class ValidationException(RankAgentException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                        details or {"field": field, "reason": reason})


class InvalidTaskException(ValidationException):
    """작업 API 응답 형식 오류"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("task", reason, details)
