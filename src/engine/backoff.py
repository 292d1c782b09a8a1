"""Backoff Scheduler - 작업 사이클 간 대기 시간 관리

- 성공 / 작업 획득 → 기본 대기 시간으로 초기화
- 빈 큐 / 실패 → increment 만큼 증가 (max_delay 상한)

대기는 프로세스 종료(shutdown 이벤트)로만 중단되며 새 작업 도착으로는
중단되지 않습니다.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from src.core.logging import logger


@dataclass
class BackoffState:
    """대기 시간 상태 (ms)"""

    current_delay: int = 3000
    base_delay: int = 3000
    increment: int = 10000
    max_delay: int = 300000

    def __post_init__(self):
        """설정 검증"""
        if self.base_delay <= 0 or self.increment < 0:
            raise ValueError("base_delay must be positive and increment non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}ms) must be >= base_delay ({self.base_delay}ms)"
            )
        self.current_delay = min(max(self.current_delay, self.base_delay), self.max_delay)


class BackoffScheduler:
    """사이클 간 적응형 대기

    Usage:
        backoff = BackoffScheduler(base_delay=3000, increment=10000, max_delay=300000)

        backoff.reset()       # 작업 획득 / 성공
        backoff.escalate()    # 빈 큐 / 실패

        stopped = await backoff.wait(shutdown_event)
    """

    def __init__(self, base_delay: int = 3000, increment: int = 10000, max_delay: int = 300000):
        self.state = BackoffState(
            current_delay=base_delay,
            base_delay=base_delay,
            increment=increment,
            max_delay=max_delay,
        )

    @property
    def current_delay(self) -> int:
        return self.state.current_delay

    @property
    def current_delay_s(self) -> float:
        return self.state.current_delay / 1000.0

    @property
    def at_max(self) -> bool:
        return self.state.current_delay >= self.state.max_delay

    def reset(self) -> int:
        """성공 또는 작업 획득 → base_delay"""
        self.state.current_delay = self.state.base_delay
        return self.state.current_delay

    def escalate(self) -> int:
        """빈 큐 또는 실패 → min(current + increment, max)"""
        self.state.current_delay = min(
            self.state.current_delay + self.state.increment,
            self.state.max_delay,
        )
        return self.state.current_delay

    # 이벤트 이름 별칭 (오케스트레이터 가독성용)
    record_success = reset
    record_task_acquired = reset
    record_failure = escalate
    record_empty_queue = escalate

    async def wait(self, shutdown: Optional[asyncio.Event] = None, reason: str = "다음 작업까지") -> bool:
        """current_delay 만큼 대기

        Args:
            shutdown: 종료 이벤트 (set 되면 즉시 반환)
            reason: 로그용 설명

        Returns:
            bool: 종료 요청으로 중단되었으면 True
        """
        delay_s = self.current_delay_s
        suffix = " (최대 대기 시간 유지)" if self.at_max else ""
        logger.info(f"[BACKOFF] {reason}: {delay_s:.0f}s 대기{suffix}")

        if shutdown is None:
            await asyncio.sleep(delay_s)
            return False

        if shutdown.is_set():
            return True

        try:
            await asyncio.wait_for(shutdown.wait(), timeout=delay_s)
            return True
        except asyncio.TimeoutError:
            return False

    def __repr__(self) -> str:
        s = self.state
        return (
            f"BackoffScheduler(current={s.current_delay}ms, base={s.base_delay}ms, "
            f"increment={s.increment}ms, max={s.max_delay}ms)"
        )
