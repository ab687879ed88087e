"""
netlist/symbol_table.py

Scoped name registry used while parsing.

The table is a stack of frames: the global frame at the bottom and one
frame per open .subckt body on top. Names are declared once per frame;
sibling subcircuits may reuse a name because their frames are separate.
Resolution looks in the active frame first and falls back to the global
frame.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class SymbolKind(Enum):
    NODE = "node"
    COMPONENT = "component"
    MODEL = "model"
    SUBCIRCUIT = "subcircuit"


@dataclass(frozen=True)
class SymbolEntry:
    name: str
    kind: SymbolKind


class SymbolError(ValueError):
    """Base class for symbol table failures."""


class DuplicateDefinition(SymbolError):
    def __init__(self, existing: SymbolEntry, scope: "Scope"):
        self.existing = existing
        self.scope = scope
        super().__init__(
            f"Duplicate definition: {existing.name} (already declared as {existing.kind.value} in {scope.name})"
        )


class UndefinedSymbol(SymbolError):
    def __init__(self, name: str, kind: Optional[SymbolKind] = None):
        self.name = name
        self.kind = kind
        expected = f" (expected {kind.value})" if kind else ""
        super().__init__(f"Undefined symbol: {name}{expected}")


class ScopeError(SymbolError):
    """Raised when popping with no local scope open."""


@dataclass
class Scope:
    """One frame of the table."""

    name: str
    entries: dict[str, SymbolEntry] = field(default_factory=dict)

    def get(self, name: str) -> Optional[SymbolEntry]:
        return self.entries.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)


GLOBAL_SCOPE_NAME = "global scope"


class SymbolTable:
    def __init__(self):
        self._global = Scope(GLOBAL_SCOPE_NAME)
        self._stack: list[Scope] = [self._global]

    @property
    def global_scope(self) -> Scope:
        return self._global

    @property
    def active(self) -> Scope:
        return self._stack[-1]

    @property
    def depth(self) -> int:
        """Number of open local frames."""
        return len(self._stack) - 1

    def push(self, name: str) -> Scope:
        scope = Scope(name)
        self._stack.append(scope)
        logger.debug("opened scope %s (depth %d)", name, self.depth)
        return scope

    def pop(self) -> Scope:
        if self.depth == 0:
            raise ScopeError("No local scope to close")
        scope = self._stack.pop()
        logger.debug("closed scope %s with %d symbols", scope.name, len(scope))
        return scope

    def declare(self, name: str, kind: SymbolKind, scope: Optional[Scope] = None) -> SymbolEntry:
        """
        Declare `name` in `scope` (the active frame by default).

        Raises:
            DuplicateDefinition: If the frame already holds the name.
        """
        scope = scope or self.active
        existing = scope.get(name)
        if existing is not None:
            raise DuplicateDefinition(existing, scope)
        entry = SymbolEntry(name, kind)
        scope.entries[name] = entry
        return entry

    def lookup(self, name: str, scope: Optional[Scope] = None) -> Optional[SymbolEntry]:
        """Single-frame lookup with no fallback."""
        return (scope or self.active).get(name)

    def resolve(self, name: str, scope: Optional[Scope] = None, kind: Optional[SymbolKind] = None) -> SymbolEntry:
        """
        Find `name` in `scope` (active frame by default), then the global frame.

        Raises:
            UndefinedSymbol: If neither frame holds the name.
        """
        scope = scope or self.active
        entry = scope.get(name)
        if entry is None and scope is not self._global:
            entry = self._global.get(name)
        if entry is None:
            raise UndefinedSymbol(name, kind)
        return entry
