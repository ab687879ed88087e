"""Tests for structured diagnostics (netlist/errors.py)."""

import pytest
from netlist.errors import ErrorHandler, ErrorKind, NetlistError, NetlistParseError


class TestNetlistError:
    def test_format(self):
        error = NetlistError(ErrorKind.LEXICAL, "Unexpected character: @", 3, 7)
        assert error.format() == "[Lexical Error] Line: 3, Column: 7: Unexpected character: @"
        assert str(error) == error.format()

    def test_io_kind_label(self):
        error = NetlistError(ErrorKind.IO, "file not found: x.cir", 0, 0)
        assert error.format().startswith("[IOError Error]")

    def test_to_dict(self):
        error = NetlistError(ErrorKind.SEMANTIC, "Undefined symbol: x", 2, 5)
        assert error.to_dict() == {"kind": "Semantic", "message": "Undefined symbol: x", "line": 2, "column": 5}

    def test_immutable(self):
        error = NetlistError(ErrorKind.SYNTAX, "m", 1, 1)
        with pytest.raises(AttributeError):
            error.line = 2


class TestErrorHandler:
    def test_starts_empty(self):
        handler = ErrorHandler()
        assert not handler.has_errors()
        assert len(handler) == 0
        assert list(handler) == []

    def test_add_keeps_order(self):
        handler = ErrorHandler()
        handler.add(ErrorKind.SYNTAX, "second", 2, 1)
        handler.add(ErrorKind.LEXICAL, "first", 1, 1)
        assert [e.message for e in handler] == ["second", "first"]

    def test_identical_errors_are_not_deduplicated(self):
        handler = ErrorHandler()
        handler.add(ErrorKind.SYNTAX, "Expected number", 1, 5)
        handler.add(ErrorKind.SYNTAX, "Expected number", 1, 5)
        assert len(handler) == 2

    def test_by_kind(self):
        handler = ErrorHandler()
        handler.add(ErrorKind.LEXICAL, "a", 1, 1)
        handler.add(ErrorKind.SEMANTIC, "b", 2, 1)
        handler.add(ErrorKind.LEXICAL, "c", 3, 1)
        assert [e.message for e in handler.by_kind(ErrorKind.LEXICAL)] == ["a", "c"]
        assert handler.by_kind(ErrorKind.RUNTIME) == []

    def test_extend(self):
        first, second = ErrorHandler(), ErrorHandler()
        first.add(ErrorKind.SYNTAX, "x", 1, 1)
        second.add(ErrorKind.IO, "y", 0, 0)
        first.extend(second)
        assert [e.kind for e in first] == [ErrorKind.SYNTAX, ErrorKind.IO]

    def test_format_errors(self):
        handler = ErrorHandler()
        handler.add(ErrorKind.SEMANTIC, "Duplicate definition: R1", 4, 1)
        assert handler.format_errors() == ["[Semantic Error] Line: 4, Column: 1: Duplicate definition: R1"]

    def test_errors_property_is_a_copy(self):
        handler = ErrorHandler()
        handler.add(ErrorKind.SYNTAX, "x", 1, 1)
        handler.errors.clear()
        assert len(handler) == 1


class TestNetlistParseError:
    def test_message_summarises(self):
        handler = ErrorHandler()
        handler.add(ErrorKind.SYNTAX, "Expected number", 1, 4)
        handler.add(ErrorKind.LEXICAL, "Unexpected character: @", 2, 1)
        exc = NetlistParseError(handler)
        assert str(exc) == "[Syntax Error] Line: 1, Column: 4: Expected number (+1 more)"
        assert len(exc.errors) == 2
        assert isinstance(exc, ValueError)
