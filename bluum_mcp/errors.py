from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence


class ConfigError(Exception):
    """Missing/invalid credentials or malformed config (fatal at startup)."""


class UnknownToolError(LookupError):
    """Dispatch was given a tool name that is not registered."""
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


@dataclass(frozen=True)
class FieldIssue:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ToolValidationError(ValueError):
    """One or more field-level violations in tool input"""
    def __init__(self, tool: str, issues: Sequence[FieldIssue]):
        self.tool = tool
        self.issues: List[FieldIssue] = list(issues)
        super().__init__(", ".join(str(i) for i in self.issues))


class BluumAPIError(Exception):
    """Bluum API error wrapper (upstream 4xx/5xx or network failure)"""
    def __init__(self, kind: str, message: str, *, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.kind = kind  # "api" | "network"
        self.status = status
        self.code = code
        self.message = message
