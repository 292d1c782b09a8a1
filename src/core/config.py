"""설정 관리 - 환경 변수 로드 및 검증"""
from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 작업 API (키워드 할당 / 결과 전송)
    api_url: str = "http://rcheck.techb.kr/api/topr"
    api_timeout_s: float = 20.0
    api_user_agent: str = "WebKit-Agent/1.0"

    # 프록시 (local ↔ 프록시 자동 전환)
    proxy_enabled: bool = True
    proxy_api_url: str = "http://mkt.techb.kr:3001/api/proxy/lists"
    proxy_api_timeout_s: float = 10.0
    proxy_refresh_interval_s: int = 300  # 5분마다 프록시 목록 새로고침
    # True: 성공해도 매 작업마다 프록시 변경, False: 실패 시에만 변경
    proxy_rotate_on_success: bool = True
    proxy_max_uses: int = 5  # 프록시 연속 사용 후 local 재시도

    # 크롤러
    crawler_max_retries: int = 3
    crawler_page_size: int = 72
    crawler_max_pages: int = 10
    crawler_timeout: int = 40000  # 페이지 로드 타임아웃 (ms)
    crawler_wait_timeout: int = 10000  # 상품 리스트 대기 (ms)
    crawler_pagination_timeout: int = 20000  # 페이지 번호 변경 확인 (ms)
    crawler_page_load_delay_ms: int = 2000
    crawler_page_navigation_delay_ms: int = 1500

    # 브라우저
    # webkit 기본, chromium/firefox 선택 가능
    crawler_browser_type: str = "webkit"
    crawler_headless: bool = True
    crawler_viewport_width: int = 1200
    crawler_viewport_height: int = 800
    crawler_launch_timeout_s: float = 25.0

    # 리소스 필터링 (트래픽 최적화)
    crawler_resource_filtering: bool = True

    # 폴링 대기 (ms)
    backoff_base_ms: int = 3000
    backoff_increment_ms: int = 10000
    backoff_max_ms: int = 300000  # 5분

    # 로깅
    log_level: str = "INFO"

    @field_validator(
        "crawler_timeout",
        "crawler_wait_timeout",
        "crawler_pagination_timeout",
        "crawler_page_size",
        "crawler_max_pages",
        "proxy_max_uses",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("crawler limits must be positive")
        return v

    @field_validator("crawler_max_retries", "crawler_page_load_delay_ms", "crawler_page_navigation_delay_ms")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @field_validator("backoff_base_ms", "backoff_increment_ms", "backoff_max_ms")
    @classmethod
    def validate_backoff(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("backoff delays must be positive")
        return v

    @field_validator("crawler_browser_type")
    @classmethod
    def validate_browser_type(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"chromium", "firefox", "webkit"}:
            raise ValueError("crawler_browser_type must be one of chromium, firefox, webkit")
        return v

    @model_validator(mode="after")
    def validate_backoff_range(self) -> "Settings":
        if self.backoff_max_ms < self.backoff_base_ms:
            raise ValueError("backoff_max_ms must be >= backoff_base_ms")
        return self

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
