"""작업 API 클라이언트 - 키워드 할당(/assign) / 결과 전송(/result)"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from src.core.config import settings
from src.core.exceptions import (
    InvalidTaskException,
    NetworkException,
    ResultDeliveryError,
    WorkSourceError,
)
from src.core.logging import logger
from src.crawlers.http_client import SharedHttpClient, get_shared_http_client
from src.schemas.rank_schema import ProductRecord, ResultPayload, SearchTask


def parse_task_payload(payload: Any) -> SearchTask:
    """/assign 응답 본문 {success, data:{...}} → SearchTask

    Raises:
        InvalidTaskException: 응답 형식 오류 또는 필수 필드 누락
    """
    if not isinstance(payload, dict) or not payload.get("success") or not isinstance(payload.get("data"), dict):
        raise InvalidTaskException("Invalid API response format")
    try:
        return SearchTask.model_validate(payload["data"])
    except ValidationError as e:
        raise InvalidTaskException(f"{e.error_count()} validation error(s) in task payload") from e


class TaskApiClient:
    """WorkSource + ResultSink (HTTP)

    Usage:
        client = TaskApiClient()
        task = await client.fetch_next_task()
        if task:
            await client.submit(task, record)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        http_client: Optional[SharedHttpClient] = None,
    ):
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout_s = timeout_s or settings.api_timeout_s
        self.http = http_client or get_shared_http_client()

    async def fetch_next_task(self) -> Optional[SearchTask]:
        logger.info("[TASK_API] Requesting keyword assignment")
        try:
            resp = await self.http.get_json(f"{self.base_url}/assign", timeout_s=self.timeout_s)
        except NetworkException as e:
            raise WorkSourceError(f"cannot reach task API: {e.message}") from e

        if resp.status == 404:
            logger.info("[TASK_API] No keyword to process")
            return None
        if resp.status != 200:
            raise WorkSourceError(f"unexpected status {resp.status}", details={"status": resp.status})

        task = parse_task_payload(resp.data)
        logger.info(f"[TASK_API] Assigned '{task.keyword}' (id={task.id}, code={task.target_code})")
        return task

    async def submit(self, task: SearchTask, record: ProductRecord) -> bool:
        payload = ResultPayload.from_record(task, record).model_dump()
        if record.is_found:
            logger.info(
                f"[TASK_API] Result: rank={record.rank}, name='{record.name or 'N/A'}' (id={task.id})"
            )
        else:
            logger.info(f"[TASK_API] Result: not found (id={task.id})")
        logger.debug(f"[TASK_API] POST payload: {payload}")

        try:
            await self._post_result(task, payload)
        except ResultDeliveryError as e:
            logger.error(f"[TASK_API] Result delivery failed: {e}")
            return False

        logger.info("[TASK_API] Result delivered")
        return True

    async def _post_result(self, task: SearchTask, payload: dict[str, Any]) -> None:
        try:
            resp = await self.http.post_json(f"{self.base_url}/result", payload, timeout_s=self.timeout_s)
        except NetworkException as e:
            raise ResultDeliveryError(task.id, e.message) from e

        if resp.status >= 400:
            raise ResultDeliveryError(task.id, f"HTTP {resp.status}")
        if not isinstance(resp.data, dict) or not resp.data.get("success"):
            raise ResultDeliveryError(task.id, "Result submission failed")
