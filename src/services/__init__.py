"""작업 공급 / 결과 전송 / 프록시 목록 서비스 - export only."""

from .impl import FileWorkSource, HttpProxyDirectory, LoggingResultSink, TaskApiClient
from .protocols import ResultSink, WorkSource

__all__ = [
    "WorkSource",
    "ResultSink",
    "TaskApiClient",
    "FileWorkSource",
    "LoggingResultSink",
    "HttpProxyDirectory",
]
