"""Services implementation package."""

from .file_work_source import FileWorkSource, LoggingResultSink
from .proxy_directory import HttpProxyDirectory, normalize_proxy_entries
from .task_api_client import TaskApiClient

__all__ = [
    "TaskApiClient",
    "FileWorkSource",
    "LoggingResultSink",
    "HttpProxyDirectory",
    "normalize_proxy_entries",
]
