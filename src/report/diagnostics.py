"""Diagnostic models.

This module contains the in-memory diagnostic produced by the checks and its
serialized record form.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from parse.syntax import Position  # noqa: TC001

SCHEMA_VERSION = 1


class Severity(str, Enum):
    ERROR = "error"
    INFO = "info"
    OK = "ok"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    pos: Position
    severity: Severity
    message: str

    def format(self) -> str:
        return f"{self.pos}: {self.message}"

    def to_record(self) -> DiagnosticRecord:
        return DiagnosticRecord(
            path=self.pos.path,
            line=self.pos.line,
            col=self.pos.col,
            severity=self.severity,
            message=self.message,
        )


class DiagnosticRecord(BaseModel):
    """A diagnostic as written to JSON output."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    path: str
    line: int
    col: int
    severity: Severity
    message: str


__all__ = ["SCHEMA_VERSION", "Diagnostic", "DiagnosticRecord", "Severity"]
