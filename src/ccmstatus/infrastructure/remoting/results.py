"""
Result containers for remote operations.

A failed operation is a value, not an exception, so callers can tell
"no evidence" apart from a negative answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PSResult:
    """Result from running a PowerShell script through a session."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    return_code: int = -1
    error: str = ""


@dataclass
class QueryResult:
    """Result from a CIM query or method invocation."""

    success: bool
    records: list[dict[str, Any]] = field(default_factory=list)
    error: str = ""

    @classmethod
    def ok(cls, records: list[dict[str, Any]]) -> QueryResult:
        return cls(success=True, records=records)

    @classmethod
    def failed(cls, error: str) -> QueryResult:
        return cls(success=False, error=error)

    @property
    def first(self) -> dict[str, Any]:
        """First record, or an empty dict."""
        return self.records[0] if self.records else {}
