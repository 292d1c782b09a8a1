"""Coupang Rank Agent 실행 진입점

    python -m src                       # 작업 API 모드
    python -m src --no-headless         # 브라우저 창 표시
    python -m src --simulate tasks.yaml # API 없이 파일 작업으로 동작 확인
    python -m src --once                # 사이클 1회만 실행
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import Optional, Sequence

from src.core.config import settings
from src.core.exceptions import BrowserException, WorkSourceError
from src.core.logging import logger, setup_logging
from src.crawlers.http_client import shutdown_shared_http_client
from src.crawlers.playwright import PlaywrightSessionFactory
from src.engine import BackoffScheduler, RankOrchestrator, ResilienceController
from src.services import FileWorkSource, HttpProxyDirectory, LoggingResultSink, TaskApiClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rank-agent", description="Coupang search rank agent")
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="headless 모드 (기본: 설정값 CRAWLER_HEADLESS)",
    )
    parser.add_argument("--simulate", metavar="TASKS_YAML", help="작업 API 대신 YAML 파일의 작업 사용 (결과는 로그만)")
    parser.add_argument("--repeat", action="store_true", help="--simulate 작업 목록을 반복")
    parser.add_argument("--once", action="store_true", help="사이클 1회만 실행 후 종료")
    parser.add_argument("--log-level", default=None, help="로그 레벨 (DEBUG/INFO/WARNING/ERROR)")
    return parser


def build_orchestrator(args: argparse.Namespace) -> RankOrchestrator:
    if args.simulate:
        work_source = FileWorkSource(args.simulate, repeat=args.repeat)
        result_sink = LoggingResultSink()
    else:
        client = TaskApiClient()
        work_source = client
        result_sink = client

    proxy_directory = HttpProxyDirectory() if settings.proxy_enabled else None
    controller = ResilienceController(
        proxy_directory,
        max_proxy_uses=settings.proxy_max_uses,
        max_retries=settings.crawler_max_retries,
        rotate_on_success=settings.proxy_rotate_on_success,
        proxy_enabled=settings.proxy_enabled,
    )
    backoff = BackoffScheduler(
        base_delay=settings.backoff_base_ms,
        increment=settings.backoff_increment_ms,
        max_delay=settings.backoff_max_ms,
    )
    factory = PlaywrightSessionFactory(headless=args.headless)

    return RankOrchestrator(
        work_source,
        result_sink,
        factory,
        controller,
        backoff,
        proxy_refresh_interval_s=settings.proxy_refresh_interval_s,
    )


def install_signal_handlers(shutdown: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _request_shutdown(signame: str) -> None:
        logger.warning(f"[AGENT] {signame} received - shutting down after current step")
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown, sig.name)
        except (NotImplementedError, RuntimeError):
            # Windows 이벤트 루프는 add_signal_handler 미지원 → KeyboardInterrupt로 처리
            pass


async def run_agent(args: argparse.Namespace) -> int:
    shutdown = asyncio.Event()
    install_signal_handlers(shutdown)

    try:
        orchestrator = build_orchestrator(args)
    except WorkSourceError as e:
        logger.error(f"[AGENT] {e}")
        return 1

    mode = f"simulate ({args.simulate})" if args.simulate else f"api ({settings.api_url})"
    logger.info(
        f"[AGENT] Coupang rank agent starting: mode={mode}, browser={settings.crawler_browser_type}, "
        f"proxy={'on' if settings.proxy_enabled else 'off'}"
    )

    try:
        await orchestrator.run(shutdown, once=args.once)
    except BrowserException as e:
        logger.error(f"[AGENT] Fatal: {e}")
        return 1
    finally:
        await shutdown_shared_http_client()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        setup_logging(args.log_level)

    try:
        return asyncio.run(run_agent(args))
    except KeyboardInterrupt:
        logger.warning("[AGENT] Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
