"""Producer half of the worker protocol: one JSON object per stdout line"""

import json
import sys
from typing import Any, NoReturn, Optional


def _emit(payload: dict) -> None:
    sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
    sys.stdout.flush()


def progress(message: str, percent: Optional[int] = None) -> None:
    """Report progress; percent is omitted when unknown"""
    payload = {"type": "progress", "message": message}
    if percent is not None:
        payload["percent"] = max(0, min(100, int(percent)))
    _emit(payload)


def success(data: Any) -> None:
    """Report the task result"""
    _emit({"type": "success", "data": data})


def error(message: str) -> NoReturn:
    """Report a fatal error and exit with status 1"""
    _emit({"type": "error", "message": message})
    sys.exit(1)
