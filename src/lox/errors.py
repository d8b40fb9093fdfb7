"""Common error and source span utilities."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


#describes an exact line/column position captured during lexing or parsing
@dataclass(frozen=True, slots=True)
class SourceLocation:
    """A 1-based line/column location inside a source file."""

    line: int
    column: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.line}:{self.column}"


#stores the start/end positions for highlighting user diagnostics
@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Represents a half-open source range [start, end)."""

    start: SourceLocation
    end: SourceLocation

    @property
    def line(self) -> int:
        return self.start.line

    def merge(self, other: "SourceSpan") -> "SourceSpan":
        """Return the minimal span that covers both spans."""

        if (self.start.line, self.start.column) <= (other.start.line, other.start.column):
            start = self.start
        else:
            start = other.start

        if (self.end.line, self.end.column) >= (other.end.line, other.end.column):
            end = self.end
        else:
            end = other.end
        return SourceSpan(start=start, end=end)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.start}-{self.end}"


#normalizes the base exception for every pipeline stage
class LoxError(Exception):
    """Base class for Lox diagnostics."""

    category = "lox"

    def __init__(self, message: str, span: SourceSpan) -> None:
        super().__init__(message)
        self.span = span
        self.message = message

    @property
    def line(self) -> int:
        return self.span.start.line

    def format(self) -> str:
        return f"[line {self.line}] {self.category} error: {self.message}"


#lexer records this for invalid characters or unterminated literals
class LexError(LoxError):
    """Raised when the lexer encounters an invalid character sequence."""

    category = "lexical"


#parser uses this to surface syntax errors with spans
class ParseError(LoxError):
    """Raised when the parser encounters an invalid construct."""

    category = "parse"


#static scope checks funnel through this
class ResolutionError(LoxError):
    """Raised for scope resolution failures."""

    category = "resolution"


#raised the instant evaluation fails; unwinds to the interpreter entry point
class LoxRuntimeError(LoxError):
    """Raised for failures while executing a program."""

    category = "runtime"


#bundles every static diagnostic gathered before execution
class StaticErrors(LoxError):
    """Collected lexical, parse, and resolution errors for one source."""

    category = "static"

    def __init__(self, errors: Iterable[LoxError]) -> None:
        self.errors: List[LoxError] = list(errors)
        first = self.errors[0]
        super().__init__(f"{len(self.errors)} error(s)", first.span)

    def format(self) -> str:
        return "\n".join(error.format() for error in self.errors)
