from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from voltline.schemas.common import CamelModel

ErrorSeverity = Literal["low", "medium", "high", "critical"]
ErrorCategory = Literal["network", "validation", "runtime", "user", "system"]


class ErrorLogEntry(CamelModel):
    id: str
    message: str = Field(max_length=4000)
    timestamp: str
    severity: ErrorSeverity = "medium"
    category: ErrorCategory = "system"
    status: int | None = None
    code: str | None = None
    stack: str | None = None
    url: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)


class ErrorBatchIn(CamelModel):
    errors: list[ErrorLogEntry] = Field(default_factory=list, max_length=500)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ErrorBatchOut(CamelModel):
    received: int


class ErrorStatsOut(CamelModel):
    total: int
    by_category: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)
    recent: int
