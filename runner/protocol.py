"""Worker IPC wire protocol: one JSON object per stdout line.

    {"type": "progress", "message": str, "percent": 0-100}
    {"type": "success", "data": <any JSON>}
    {"type": "error", "message": str}
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class ProgressMessage(BaseModel):
    """Incremental status from the worker"""
    type: Literal["progress"]
    message: str
    percent: int = Field(default=0, ge=0, le=100)


class SuccessMessage(BaseModel):
    """Task result payload"""
    type: Literal["success"]
    data: Any


class ErrorMessage(BaseModel):
    """Fatal task failure"""
    type: Literal["error"]
    message: str


IpcMessage = Annotated[
    Union[ProgressMessage, SuccessMessage, ErrorMessage],
    Field(discriminator="type"),
]

_ipc_adapter = TypeAdapter(IpcMessage)


def decode_message(line: str) -> Optional[Union[ProgressMessage, SuccessMessage, ErrorMessage]]:
    """
    Decode one stdout line.

    Returns:
        The typed message, or None when the line is not a protocol message
        (invalid JSON, unknown type, missing or out-of-range fields)
    """
    try:
        return _ipc_adapter.validate_json(line)
    except ValidationError as e:
        logger.debug(f"Non-protocol worker line ({e.error_count()} validation errors)")
        return None


def format_progress(message: ProgressMessage) -> str:
    return f"⏳ [{message.percent:02d}%] {message.message}"


def format_diagnostic(line: str) -> str:
    return f"📝 {line}"


@dataclass(frozen=True)
class TaskOutput:
    """Digest of a completed worker run

    Attributes:
        headers: Column names when the result carried a table
        rows: Table rows, each exactly len(headers) cells once headers are known
        message: Free-form message accompanying the table
        file_path: File reference accompanying the table
        raw: Verbatim payload when no table shape was present
        has_raw: raw holds a payload, which may itself be JSON null
    """
    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    message: Optional[str] = None
    file_path: Optional[str] = None
    raw: Optional[Any] = None
    has_raw: bool = False

    @property
    def has_table(self) -> bool:
        return bool(self.headers or self.rows)

    @property
    def raw_json(self) -> Optional[str]:
        if self.raw is None and not self.has_raw:
            return None
        return json.dumps(self.raw, indent=2, ensure_ascii=False)


def _cell(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def digest_success(data: Any) -> TaskOutput:
    """
    Interpret a Success payload.

    A payload with a "table" key becomes headers/rows (non-string cells become
    "", non-list rows are skipped) plus any "message" and "file_path". Anything
    else is kept verbatim in TaskOutput.raw.
    """
    if not isinstance(data, dict) or "table" not in data:
        return TaskOutput(raw=data, has_raw=True)

    table = data["table"] if isinstance(data["table"], dict) else {}

    raw_headers = table.get("headers")
    headers = [_cell(h) for h in raw_headers] if isinstance(raw_headers, list) else []

    rows: List[List[str]] = []
    raw_rows = table.get("rows")
    if isinstance(raw_rows, list):
        for raw_row in raw_rows:
            if not isinstance(raw_row, list):
                continue
            row = [_cell(v) for v in raw_row]
            if headers:
                row = (row + [""] * len(headers))[:len(headers)]
            rows.append(row)

    return TaskOutput(
        headers=headers,
        rows=rows,
        message=_optional_str(data.get("message")),
        file_path=_optional_str(data.get("file_path")),
    )
