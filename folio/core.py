"""Core result types shared by the storage layer and the server."""

from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class Diag(BaseModel):
    """A structured diagnostic attached to a store operation."""

    severity: Severity
    code: str
    message: str


class Result(BaseModel, Generic[T]):  # noqa: UP046 - pydantic needs the Generic[T] base
    """Pairs a store operation's output with its diagnostics.

    Expected conditions (missing record, wrong owner, bad input) are reported
    as error diagnostics instead of exceptions. The server turns the first
    error code into an HTTP status.
    """

    data: T | None = None
    diagnostics: list[Diag] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def ok(self) -> bool:
        return not self.has_errors

    @property
    def error_code(self) -> str | None:
        for d in self.diagnostics:
            if d.severity == Severity.ERROR:
                return d.code
        return None

    def error(self, code: str, message: str) -> None:
        self.diagnostics.append(Diag(severity=Severity.ERROR, code=code, message=message))

    def warning(self, code: str, message: str) -> None:
        self.diagnostics.append(Diag(severity=Severity.WARNING, code=code, message=message))
