"""시뮬레이션용 작업 소스 / 결과 수신자

실제 API 호출 없이 YAML 파일의 작업 목록으로 크롤링 동작을 확인합니다.
작업 형식은 /assign 응답의 data 와 동일합니다.

    - id: 1
      keyword: 삼성 갤럭시버즈
      product_id: "6403686318"
      item_id: "17738274085"
      vendor_item_id: "79520677967"
"""

from __future__ import annotations

import os
from collections import deque
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from src.core.exceptions import InvalidTaskException, WorkSourceError
from src.core.logging import logger
from src.schemas.rank_schema import ProductRecord, ResultPayload, SearchTask


def load_task_file(path: str) -> list[dict[str, Any]]:
    """YAML 작업 목록 로드 (최상위 list 또는 {tasks: [...]})

    Raises:
        WorkSourceError: 파일 없음 / YAML 오류 / 형식 오류
    """
    if not os.path.exists(path):
        raise WorkSourceError(f"task file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise WorkSourceError(f"cannot read task file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("tasks")
    if not isinstance(data, list):
        raise WorkSourceError(f"task file must contain a list of tasks: {path}")
    return data


class FileWorkSource:
    """YAML 파일 기반 WorkSource (파일 순서대로)

    Args:
        path: 작업 목록 YAML 경로
        repeat: True면 목록 끝에서 처음으로 돌아감
    """

    def __init__(self, path: str, *, repeat: bool = False):
        self.path = path
        self.repeat = repeat
        self._items = load_task_file(path)
        self._index = 0
        logger.info(f"[SIMULATE] Loaded {len(self._items)} tasks from {path}")

    @property
    def remaining(self) -> Optional[int]:
        if self.repeat:
            return None
        return max(0, len(self._items) - self._index)

    async def fetch_next_task(self) -> Optional[SearchTask]:
        if not self._items:
            return None
        if self._index >= len(self._items):
            if not self.repeat:
                return None
            self._index = 0

        item = self._items[self._index]
        self._index += 1

        if not isinstance(item, dict):
            raise InvalidTaskException(f"task #{self._index} is not a mapping")
        try:
            task = SearchTask.model_validate(item)
        except ValidationError as e:
            raise InvalidTaskException(f"task #{self._index}: {e.error_count()} validation error(s)") from e

        logger.info(f"[SIMULATE] Assigned '{task.keyword}' (id={task.id}, code={task.target_code})")
        return task


class LoggingResultSink:
    """결과를 전송하지 않고 로그로만 남기는 ResultSink

    delivered에는 최근 max_kept건만 보관하고, 전체 건수는 submitted로 셉니다.
    """

    MAX_KEPT = 100

    def __init__(self, max_kept: int = MAX_KEPT) -> None:
        self.delivered: deque[ResultPayload] = deque(maxlen=max_kept)
        self.submitted = 0

    async def submit(self, task: SearchTask, record: ProductRecord) -> bool:
        payload = ResultPayload.from_record(task, record)
        self.delivered.append(payload)
        self.submitted += 1

        logger.info(f"[SIMULATE] Result id={payload.id} rank={payload.rank}")
        if payload.product_data:
            for key, value in payload.product_data.items():
                logger.info(f"[SIMULATE]   {key}: {value}")
        else:
            logger.info("[SIMULATE]   product_data: {}")
        return True
