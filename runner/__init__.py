"""
Worker process adapter: spawn, token handoff and JSON-lines IPC
"""
from .protocol import (
    ProgressMessage,
    SuccessMessage,
    ErrorMessage,
    TaskOutput,
    decode_message,
    digest_success,
)
from .channel import (
    ProgressChannel,
    ProgressEvent,
    ErrorEvent,
    ResultEvent,
    TaskEvent,
)
from .worker import WorkerRun, resolve_worker_command, run_task

__all__ = [
    # Protocol
    "ProgressMessage",
    "SuccessMessage",
    "ErrorMessage",
    "TaskOutput",
    "decode_message",
    "digest_success",
    # Channel
    "ProgressChannel",
    "ProgressEvent",
    "ErrorEvent",
    "ResultEvent",
    "TaskEvent",
    # Worker
    "WorkerRun",
    "resolve_worker_command",
    "run_task",
]
