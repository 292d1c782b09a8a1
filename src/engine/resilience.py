"""Network Resilience Controller - Direct ↔ Proxied 연결 모드 상태 머신

상태 전이:
- Direct  --(BLOCKED)-->                       Proxied  (프록시 목록 캐시, 랜덤 선택)
- Proxied --(BLOCKED / PROXY_ERROR)-->         Proxied  (다른 프록시로 교체)
- Proxied --(연속 사용 >= max, 사이클 시작)--> Direct
- Proxied --(rotate-on-success, 사이클 시작)--> Proxied  (새 프록시)

전이가 브라우저 재시작을 요구하면 Transition.restart_required 로 알려주며,
세션 정리/재생성은 호출자(오케스트레이터)가 수행합니다.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from src.core.exceptions import ProxyListUnavailable, RetryBudgetExceeded
from src.core.logging import logger, sanitize_for_log

from .classifier import ConnectionMode, ErrorCategory, classify_exception

T = TypeVar("T")


class ProxyDirectory(Protocol):
    """프록시 목록 제공자"""

    async def fetch_proxies(self) -> list[str]:
        """프록시 엔드포인트 목록 (실패 시 ProxyListUnavailable)"""
        ...


class TransitionKind(str, Enum):
    """연결 모드 전이 종류"""

    NONE = "none"
    DIRECT_TO_PROXIED = "direct_to_proxied"
    ROTATE_ON_FAILURE = "rotate_on_failure"
    RETREAT_TO_DIRECT = "retreat_to_direct"
    ROTATE_ON_SUCCESS = "rotate_on_success"
    RESTART_SAME_PATH = "restart_same_path"


@dataclass(frozen=True)
class Transition:
    """전이 결과"""

    kind: TransitionKind = TransitionKind.NONE
    restart_required: bool = False
    proxy: Optional[str] = None

    @classmethod
    def none(cls) -> "Transition":
        return cls()


@dataclass
class ConnectionStats:
    """누적 연결 통계"""

    direct_attempts: int = 0
    direct_successes: int = 0
    proxied_attempts: int = 0
    proxied_successes: int = 0
    mode_switches: int = 0

    @property
    def direct_success_rate(self) -> float:
        """Direct 성공률 (0.0~1.0)."""
        return self.direct_successes / self.direct_attempts if self.direct_attempts > 0 else 0.0

    @property
    def proxied_success_rate(self) -> float:
        """Proxied 성공률 (0.0~1.0)."""
        return self.proxied_successes / self.proxied_attempts if self.proxied_attempts > 0 else 0.0

    def __repr__(self) -> str:
        return (
            f"Stats(direct: {self.direct_successes}/{self.direct_attempts}={self.direct_success_rate:.1%}, "
            f"proxied: {self.proxied_successes}/{self.proxied_attempts}={self.proxied_success_rate:.1%}, "
            f"switches: {self.mode_switches})"
        )


@dataclass
class ConnectionState:
    """현재 연결 모드 상태

    불변식: active_proxy는 PROXIED일 때만 존재, 모드 전이 시 consecutive_proxy_uses = 0
    """

    mode: ConnectionMode = ConnectionMode.DIRECT
    active_proxy: Optional[str] = None
    consecutive_proxy_uses: int = 0
    max_proxy_uses: int = 5
    max_retries: int = 3
    stats: ConnectionStats = field(default_factory=ConnectionStats)

    @property
    def is_proxied(self) -> bool:
        return self.mode is ConnectionMode.PROXIED


class ResilienceController:
    """연결 모드 전환 + 재시도 관리자

    Usage:
        controller = ResilienceController(proxy_directory)

        # 사이클 시작 시
        transition = controller.begin_cycle()
        if transition.restart_required:
            await restart_session()

        # 작업 실행 (차단/프록시 오류 시 최대 max_retries 재시도)
        record = await controller.run(task.id, attempt, restart_session)
    """

    def __init__(
        self,
        proxy_directory: Optional[ProxyDirectory],
        *,
        max_proxy_uses: int = 5,
        max_retries: int = 3,
        rotate_on_success: bool = True,
        proxy_enabled: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        """초기화.

        Args:
            proxy_directory: 프록시 목록 제공자 (None이면 프록시 비활성)
            max_proxy_uses: 프록시 연속 사용 후 Direct 복귀 임계값
            max_retries: 작업별 최대 재시도 횟수
            rotate_on_success: 성공해도 매 사이클 프록시 변경 여부
            proxy_enabled: False면 Direct 모드만 사용 (분류/재시도는 유지)
            rng: 프록시 선택용 난수 생성기 (테스트 주입용)
        """
        if max_proxy_uses <= 0:
            raise ValueError("max_proxy_uses must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self.proxy_directory = proxy_directory
        self.rotate_on_success = rotate_on_success
        self.proxy_enabled = proxy_enabled and proxy_directory is not None
        self.state = ConnectionState(max_proxy_uses=max_proxy_uses, max_retries=max_retries)
        self._proxies: list[str] = []
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # 프록시 목록
    # ------------------------------------------------------------------

    @property
    def proxy_pool(self) -> tuple[str, ...]:
        return tuple(self._proxies)

    async def refresh_proxies(self) -> bool:
        """프록시 목록 새로고침. 실패 시 기존 캐시 유지."""
        if not self.proxy_enabled:
            return False
        try:
            proxies = await self.proxy_directory.fetch_proxies()
        except ProxyListUnavailable as e:
            logger.warning(f"[RESILIENCE] Proxy list refresh failed, keeping {len(self._proxies)} cached: {e}")
            return False
        self._proxies = list(proxies)
        logger.info(f"[RESILIENCE] Proxy list updated: {len(self._proxies)} proxies")
        return True

    async def _ensure_proxies(self) -> None:
        if self._proxies:
            return
        proxies = await self.proxy_directory.fetch_proxies()
        if not proxies:
            raise ProxyListUnavailable("proxy directory returned an empty list")
        self._proxies = list(proxies)
        logger.info(f"[RESILIENCE] Proxy list loaded: {len(self._proxies)} proxies")

    def _pick_proxy(self) -> str:
        if not self._proxies:
            raise ProxyListUnavailable("no cached proxies")
        proxy = self._rng.choice(self._proxies)
        logger.info(f"[RESILIENCE] Random proxy selected: {sanitize_for_log(proxy)}")
        return proxy

    # ------------------------------------------------------------------
    # 사이클 시작 시 전이
    # ------------------------------------------------------------------

    def pending_transition(self) -> TransitionKind:
        """사이클 시작 시 발생할 전이 (상태 변경 없음)

        Direct 복귀 조건을 먼저 평가하며, 해당되면 rotate-on-success는 보지 않습니다.
        """
        s = self.state
        if not s.is_proxied:
            return TransitionKind.NONE
        if s.consecutive_proxy_uses >= s.max_proxy_uses:
            return TransitionKind.RETREAT_TO_DIRECT
        if self.rotate_on_success and s.consecutive_proxy_uses > 0 and self._proxies:
            return TransitionKind.ROTATE_ON_SUCCESS
        return TransitionKind.NONE

    def begin_cycle(self) -> Transition:
        """사이클 시작 시 전이 적용 (먼저 해당되는 하나만)"""
        pending = self.pending_transition()

        if pending is TransitionKind.RETREAT_TO_DIRECT:
            return self._retreat_to_direct()

        if pending is TransitionKind.ROTATE_ON_SUCCESS:
            old_proxy = self.state.active_proxy
            new_proxy = self._pick_proxy()
            self.state.active_proxy = new_proxy
            if new_proxy != old_proxy:
                logger.info(
                    f"[RESILIENCE] Proxy rotation: {sanitize_for_log(old_proxy)} → {sanitize_for_log(new_proxy)}"
                )
                return Transition(TransitionKind.ROTATE_ON_SUCCESS, restart_required=True, proxy=new_proxy)
            return Transition(TransitionKind.ROTATE_ON_SUCCESS, restart_required=False, proxy=new_proxy)

        return Transition.none()

    def _retreat_to_direct(self) -> Transition:
        s = self.state
        logger.info(f"[RESILIENCE] Proxied → Direct after {s.consecutive_proxy_uses} consecutive proxy uses")
        s.mode = ConnectionMode.DIRECT
        s.active_proxy = None
        s.consecutive_proxy_uses = 0
        s.stats.mode_switches += 1
        return Transition(TransitionKind.RETREAT_TO_DIRECT, restart_required=True)

    # ------------------------------------------------------------------
    # 시도/성공 기록
    # ------------------------------------------------------------------

    def record_attempt(self) -> None:
        """시도 횟수 증가 (매 시도 시작 시 호출)"""
        s = self.state
        if s.is_proxied:
            s.stats.proxied_attempts += 1
            s.consecutive_proxy_uses += 1
            logger.info(f"[RESILIENCE] Proxy in use ({s.consecutive_proxy_uses}/{s.max_proxy_uses})")
        else:
            s.stats.direct_attempts += 1

    def record_success(self) -> None:
        """성공 기록 - 현재 모드의 성공 카운터만 증가"""
        s = self.state
        if s.is_proxied:
            s.stats.proxied_successes += 1
            logger.info(f"[RESILIENCE] Proxy success ({s.consecutive_proxy_uses}/{s.max_proxy_uses})")
        else:
            s.stats.direct_successes += 1
            logger.debug("[RESILIENCE] Direct connection success")

    # ------------------------------------------------------------------
    # 실패 시 전이
    # ------------------------------------------------------------------

    async def fail_over(self, category: ErrorCategory, error: BaseException) -> Transition:
        """분류된 실패에 해당하는 전이 적용

        Raises:
            error: Direct→Proxied 전환에 필요한 프록시 목록을 가져올 수 없는 경우
                원래 예외(BlockedError 등)를 그대로 다시 발생
        """
        s = self.state

        if not category.is_retryable:
            return Transition.none()

        if s.is_proxied:
            # 실패 시 같은 모드에서 다른 프록시로 교체
            logger.warning(f"[RESILIENCE] Proxy failure ({category.value}) - switching to another proxy")
            s.active_proxy = self._pick_proxy()
            s.stats.mode_switches += 1
            return Transition(TransitionKind.ROTATE_ON_FAILURE, restart_required=True, proxy=s.active_proxy)

        if category is ErrorCategory.BLOCKED and self.proxy_enabled:
            logger.warning("[RESILIENCE] Direct → Proxied (blocked)")
            try:
                await self._ensure_proxies()
            except ProxyListUnavailable as e:
                logger.error(f"[RESILIENCE] Cannot switch to proxy mode: {e}")
                raise error from e
            s.mode = ConnectionMode.PROXIED
            s.active_proxy = self._pick_proxy()
            s.consecutive_proxy_uses = 0
            s.stats.mode_switches += 1
            return Transition(TransitionKind.DIRECT_TO_PROXIED, restart_required=True, proxy=s.active_proxy)

        # Direct에서 프록시 오류(또는 프록시 비활성 상태의 차단): 경로 유지, 세션만 재시작
        return Transition(TransitionKind.RESTART_SAME_PATH, restart_required=True)

    # ------------------------------------------------------------------
    # 재시도 래퍼
    # ------------------------------------------------------------------

    async def run(
        self,
        task_id: object,
        attempt: Callable[[], Awaitable[T]],
        restart_session: Callable[[], Awaitable[None]],
    ) -> T:
        """작업 하나를 재시도 예산 내에서 실행

        - BLOCKED / PROXY_ERROR: 전이 적용 → 세션 재시작 → 같은 작업 재시도
        - UNCLASSIFIED: 즉시 전파 (재시도 없음)
        - retry_count >= max_retries: RetryBudgetExceeded

        Args:
            task_id: 로그/예외용 작업 ID
            attempt: 현재 세션으로 작업을 1회 수행하는 코루틴 팩토리
            restart_session: 세션 정리 후 현재 연결 상태로 재생성

        Returns:
            attempt()의 결과
        """
        retry_count = 0
        while True:
            self.record_attempt()
            try:
                result = await attempt()
            except Exception as e:
                category = classify_exception(e, self.state.mode)
                if not category.is_retryable:
                    raise

                if retry_count >= self.state.max_retries:
                    logger.error(
                        f"[RESILIENCE] Retry budget exhausted: task={task_id}, "
                        f"retries={retry_count}/{self.state.max_retries}, category={category.value}"
                    )
                    raise RetryBudgetExceeded(task_id, retry_count, str(e)) from e

                transition = await self.fail_over(category, e)
                retry_count += 1
                logger.warning(
                    f"[RESILIENCE] {category.value} on task={task_id} → {transition.kind.value}, "
                    f"retry {retry_count}/{self.state.max_retries}"
                )
                if transition.restart_required:
                    await restart_session()
                continue

            self.record_success()
            return result

    # ------------------------------------------------------------------
    # 상태
    # ------------------------------------------------------------------

    def status(self) -> dict:
        """현재 상태 정보 반환"""
        s = self.state
        return {
            "mode": s.mode.value,
            "proxy": s.active_proxy,
            "proxy_use_count": s.consecutive_proxy_uses,
            "max_proxy_uses": s.max_proxy_uses,
            "proxy_count": len(self._proxies),
            "stats": {
                "direct_attempts": s.stats.direct_attempts,
                "direct_successes": s.stats.direct_successes,
                "proxied_attempts": s.stats.proxied_attempts,
                "proxied_successes": s.stats.proxied_successes,
                "mode_switches": s.stats.mode_switches,
            },
        }

    def log_stats(self) -> None:
        """통계 정보 로깅"""
        s = self.state
        mode = "direct" if not s.is_proxied else f"proxied via {sanitize_for_log(s.active_proxy)}"
        logger.info(f"[RESILIENCE] mode={mode}, {s.stats!r}")

    def __repr__(self) -> str:
        s = self.state
        return (
            f"ResilienceController({s.mode.value}, uses={s.consecutive_proxy_uses}/{s.max_proxy_uses}, "
            f"pool={len(self._proxies)})"
        )
