"""Rank Orchestrator - 메인 작업 루프

매 사이클:
1. (주기적으로) 프록시 목록 새로고침
2. 작업 요청 → 없으면 대기 시간 증가
3. 사이클 시작 전이 적용 (Direct 복귀 / 프록시 로테이션) → 필요 시 세션 재시작
4. ResilienceController.run() 으로 Locator 실행 (차단 시 전환 + 재시도)
5. 결과 전송, 대기 시간 조정

작업은 항상 하나씩 순차 처리되며, 종료 이벤트는 사이클 사이 / 대기 중에만 확인합니다.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from src.core.exceptions import (
    BrowserException,
    InvalidTaskException,
    RankAgentException,
    WorkSourceError,
)
from src.core.logging import logger
from src.crawlers.coupang import TargetLocator
from src.crawlers.session import RenderSession, SessionFactory
from src.schemas.rank_schema import ProductRecord, SearchTask
from src.services.protocols import ResultSink, WorkSource

from .backoff import BackoffScheduler
from .resilience import ResilienceController


class CycleOutcome(str, Enum):
    """사이클 결과"""

    SUCCESS = "success"  # 결과 전송까지 완료 (미발견 포함)
    IDLE = "idle"  # 처리할 작업 없음
    FAILED = "failed"  # 작업 처리 실패 (결과 전송 안 함)
    SOURCE_ERROR = "source_error"  # 작업 요청 실패


@dataclass
class AgentStats:
    """누적 처리 통계"""

    cycles: int = 0
    completed: int = 0
    found: int = 0
    failed: int = 0
    idle: int = 0
    undelivered: int = 0

    def __repr__(self) -> str:
        return (
            f"AgentStats(cycles={self.cycles}, completed={self.completed}, found={self.found}, "
            f"failed={self.failed}, idle={self.idle}, undelivered={self.undelivered})"
        )


class RankOrchestrator:
    """작업 루프 관리자

    Usage:
        orchestrator = RankOrchestrator(source, sink, factory, controller, backoff)
        exit_code = await orchestrator.run(shutdown_event)
    """

    def __init__(
        self,
        work_source: WorkSource,
        result_sink: ResultSink,
        session_factory: SessionFactory,
        controller: ResilienceController,
        backoff: BackoffScheduler,
        locator: Optional[TargetLocator] = None,
        *,
        proxy_refresh_interval_s: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            work_source: 작업 공급자
            result_sink: 결과 수신자
            session_factory: 렌더링 세션 생성/정리
            controller: 연결 모드 관리자
            backoff: 사이클 간 대기 관리자
            locator: 순위 탐색기 (기본: TargetLocator())
            proxy_refresh_interval_s: 프록시 목록 새로고침 주기
            clock: 단조 시계 (테스트 주입용)
        """
        self.work_source = work_source
        self.result_sink = result_sink
        self.session_factory = session_factory
        self.controller = controller
        self.backoff = backoff
        self.locator = locator or TargetLocator()
        self.proxy_refresh_interval_s = proxy_refresh_interval_s
        self.stats = AgentStats()

        self._clock = clock
        self._session: Optional[RenderSession] = None
        self._last_proxy_refresh: Optional[float] = None

    @property
    def session(self) -> Optional[RenderSession]:
        return self._session

    # ------------------------------------------------------------------
    # 세션
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """최초 세션 생성

        Raises:
            BrowserException: 브라우저 실행 실패
        """
        logger.info("[AGENT] Starting render session")
        await self.restart_session()

    async def restart_session(self) -> None:
        """현재 연결 상태(프록시)로 세션 재생성 - 기존 세션은 factory가 정리"""
        self._session = None
        self._session = await self.session_factory.new_session(self.controller.state.active_proxy)

    async def shutdown(self) -> None:
        self._session = None
        await self.session_factory.close_session()
        logger.info(f"[AGENT] Stopped. {self.stats!r}")
        self.controller.log_stats()

    # ------------------------------------------------------------------
    # 사이클
    # ------------------------------------------------------------------

    async def _maybe_refresh_proxies(self) -> None:
        if not self.controller.proxy_enabled or not self.controller.proxy_pool:
            return
        now = self._clock()
        if self._last_proxy_refresh is None:
            self._last_proxy_refresh = now
            return
        if now - self._last_proxy_refresh >= self.proxy_refresh_interval_s:
            self._last_proxy_refresh = now
            await self.controller.refresh_proxies()

    async def _locate(self, task: SearchTask) -> ProductRecord:
        if self._session is None:
            await self.restart_session()
        return await self.locator.locate(task, self._session)

    async def run_cycle(self) -> CycleOutcome:
        """사이클 1회 실행 (대기 제외)"""
        self.stats.cycles += 1
        await self._maybe_refresh_proxies()

        try:
            task = await self.work_source.fetch_next_task()
        except (WorkSourceError, InvalidTaskException) as e:
            delay = self.backoff.record_failure()
            logger.error(f"[AGENT] {e} - next attempt in {delay / 1000:.0f}s")
            return CycleOutcome.SOURCE_ERROR

        if task is None:
            self.stats.idle += 1
            delay = self.backoff.record_empty_queue()
            suffix = " (max)" if self.backoff.at_max else ""
            logger.info(f"[AGENT] No task available - wait increased to {delay / 1000:.0f}s{suffix}")
            return CycleOutcome.IDLE

        self.backoff.record_task_acquired()
        logger.info(f"[AGENT] Task started: '{task.keyword}' (id={task.id})")
        started = self._clock()

        try:
            transition = self.controller.begin_cycle()
            if transition.restart_required or self._session is None:
                await self.restart_session()

            record = await self.controller.run(
                task.id,
                lambda: self._locate(task),
                self.restart_session,
            )
        except Exception as e:
            self.stats.failed += 1
            code = e.error_code if isinstance(e, RankAgentException) else "UNCLASSIFIED"
            delay = self.backoff.record_failure()
            elapsed = self._clock() - started
            logger.error(
                f"[AGENT] Task failed [{code}] id={task.id}: {e} "
                f"({elapsed:.1f}s) - result not sent, wait increased to {delay / 1000:.0f}s"
            )
            if isinstance(e, BrowserException):
                self._session = None
            self.controller.log_stats()
            return CycleOutcome.FAILED

        delivered = await self.result_sink.submit(task, record)
        if not delivered:
            self.stats.undelivered += 1

        self.stats.completed += 1
        if record.is_found:
            self.stats.found += 1
        self.backoff.record_success()

        elapsed = self._clock() - started
        outcome = f"rank={record.rank}" if record.is_found else "not found"
        logger.info(f"[AGENT] Task completed: {outcome} ({elapsed:.1f}s)")
        self.controller.log_stats()
        return CycleOutcome.SUCCESS

    async def run(self, shutdown: Optional[asyncio.Event] = None, *, once: bool = False) -> None:
        """메인 루프

        Args:
            shutdown: 종료 이벤트 (SIGINT/SIGTERM)
            once: True면 사이클 1회만 실행

        Raises:
            BrowserException: 최초 세션 생성 실패
        """
        shutdown = shutdown or asyncio.Event()
        await self.start()
        try:
            while not shutdown.is_set():
                outcome = await self.run_cycle()
                if once:
                    break
                reason = "다음 작업까지" if outcome is CycleOutcome.SUCCESS else "재시도까지"
                if await self.backoff.wait(shutdown, reason=reason):
                    logger.info("[AGENT] Shutdown requested")
                    break
        finally:
            await self.shutdown()
