"""
netlist/errors.py

Structured diagnostics shared by the tokenizer and the parser.

Neither stage stops at the first problem: both record into one
ErrorHandler so a single pass reports everything wrong with a file.
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Error taxonomy. Runtime and IOError belong to layers outside the parser."""

    LEXICAL = "Lexical"
    SYNTAX = "Syntax"
    SEMANTIC = "Semantic"
    RUNTIME = "Runtime"
    IO = "IOError"


@dataclass(frozen=True)
class NetlistError:
    kind: ErrorKind
    message: str
    line: int
    column: int

    def format(self) -> str:
        return f"[{self.kind.value} Error] Line: {self.line}, Column: {self.column}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }

    def __str__(self) -> str:
        return self.format()


class NetlistParseError(ValueError):
    """Raised when a caller asks for a parse that recorded errors to fail."""

    def __init__(self, errors):
        self.errors = list(errors)
        summary = self.errors[0].format() if self.errors else "no errors"
        more = f" (+{len(self.errors) - 1} more)" if len(self.errors) > 1 else ""
        super().__init__(f"{summary}{more}")


class ErrorHandler:
    """Ordered accumulator of NetlistError records. Nothing is deduplicated."""

    def __init__(self):
        self._errors: list[NetlistError] = []

    def add(self, kind: ErrorKind, message: str, line: int, column: int) -> NetlistError:
        error = NetlistError(kind, message, line, column)
        self._errors.append(error)
        logger.debug("recorded %s", error)
        return error

    def add_error(self, error: NetlistError) -> None:
        self._errors.append(error)
        logger.debug("recorded %s", error)

    def extend(self, errors) -> None:
        for error in errors:
            self.add_error(error)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def by_kind(self, kind: ErrorKind) -> list[NetlistError]:
        return [e for e in self._errors if e.kind is kind]

    @property
    def errors(self) -> list[NetlistError]:
        return list(self._errors)

    def format_errors(self) -> list[str]:
        return [e.format() for e in self._errors]

    def __iter__(self):
        return iter(list(self._errors))

    def __len__(self) -> int:
        return len(self._errors)

    def __repr__(self) -> str:
        return f"ErrorHandler({len(self._errors)} errors)"
