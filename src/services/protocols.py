"""작업 공급/결과 전송 Protocol

오케스트레이터는 이 인터페이스만 사용하며 HTTP API / 파일 시뮬레이션
구현을 구분하지 않습니다.
"""

from typing import Optional, Protocol

from src.schemas.rank_schema import ProductRecord, SearchTask


class WorkSource(Protocol):
    """작업 공급자 (pull 방식)"""

    async def fetch_next_task(self) -> Optional[SearchTask]:
        """다음 작업 (없으면 None)

        Raises:
            WorkSourceError: 작업 소스에 접근할 수 없음
            InvalidTaskException: 작업 형식 오류
        """
        ...


class ResultSink(Protocol):
    """결과 수신자"""

    async def submit(self, task: SearchTask, record: ProductRecord) -> bool:
        """결과 전송 (실패 시 False, 예외를 던지지 않음)"""
        ...
