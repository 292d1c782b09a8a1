"""Rank Agent Engine - 분류 / 연결 모드 관리 / 대기 / 작업 루프

Usage:
    from src.engine import RankOrchestrator, ResilienceController, BackoffScheduler
"""

from .backoff import BackoffScheduler, BackoffState
from .classifier import ConnectionMode, ErrorCategory, classify_error, classify_exception
from .orchestrator import AgentStats, CycleOutcome, RankOrchestrator
from .resilience import (
    ConnectionState,
    ConnectionStats,
    ProxyDirectory,
    ResilienceController,
    Transition,
    TransitionKind,
)

__all__ = [
    "BackoffScheduler",
    "BackoffState",
    "ConnectionMode",
    "ErrorCategory",
    "classify_error",
    "classify_exception",
    "RankOrchestrator",
    "CycleOutcome",
    "AgentStats",
    "ResilienceController",
    "ConnectionState",
    "ConnectionStats",
    "ProxyDirectory",
    "Transition",
    "TransitionKind",
]
