"""리소스 파일(YAML) 로더 유틸리티"""
import os
import yaml
from typing import Any, Dict
from functools import lru_cache

from src.core.logging import logger


def get_resource_path(relative_path: str) -> str:
    """프로젝트 루트 기준 리소스 절대 경로 반환"""
    # src/utils/resource_loader.py -> src/utils -> src -> root
    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.path.join(base_dir, "resources", relative_path)


@lru_cache(maxsize=32)
def load_yaml_resource(relative_path: str) -> Dict[str, Any]:
    """YAML 리소스 로드 및 캐싱"""
    path = get_resource_path(relative_path)
    if not os.path.exists(path):
        logger.warning(f"Resource not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load YAML resource {path}: {e}")
        return {}


def load_error_signatures() -> Dict[str, tuple[str, ...]]:
    """차단/프록시 오류 판별용 에러 메시지 시그니처"""
    data = load_yaml_resource("coupang/signatures.yaml").get("errors", {})
    return {
        "blocked": tuple(data.get("blocked", [])),
        "proxy_failure": tuple(data.get("proxy_failure", [])),
        "navigation_timeout": tuple(data.get("navigation_timeout", [])),
    }


def load_page_signatures() -> Dict[str, tuple[str, ...]]:
    """렌더링된 페이지의 에러/검색결과 없음 마커"""
    data = load_yaml_resource("coupang/signatures.yaml").get("page", {})
    return {
        "error_body": tuple(data.get("error_body", [])),
        "error_title": tuple(data.get("error_title", [])),
        "error_url": tuple(data.get("error_url", [])),
        "no_result_text": tuple(data.get("no_result_text", [])),
    }


def load_discount_keywords() -> tuple[str, ...]:
    """할인 타입 키워드 (부분 문자열 매칭)"""
    data = load_yaml_resource("coupang/signatures.yaml")
    return tuple(data.get("discount_keywords", []))


def load_resource_filter() -> Dict[str, Any]:
    """리소스 필터링 규칙 (차단 도메인/타입/확장자, 대체 응답)"""
    data = load_yaml_resource("coupang/resource_filter.yaml")
    return {
        "blocked_domains": tuple(data.get("blocked_domains", [])),
        "blocked_resource_types": frozenset(data.get("blocked_resource_types", [])),
        "blocked_extensions": tuple(data.get("blocked_extensions", [])),
        "replacements": dict(data.get("replacements", {})),
    }
