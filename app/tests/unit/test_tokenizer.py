"""Tests for the netlist tokenizer (netlist/tokenizer.py)."""

import pytest
from netlist.errors import ErrorHandler, ErrorKind
from netlist.tokenizer import Cursor, scan_directive, scan_number, scan_tokens
from netlist.tokens import TokenKind


def kinds(tokens):
    return [t.kind for t in tokens]


def lexemes(tokens):
    return [t.lexeme for t in tokens if t.kind is not TokenKind.EOF]


# ── Cursor ────────────────────────────────────────────────────────────


class TestCursor:
    def test_starts_at_line_one_column_one(self):
        cursor = Cursor("abc")
        assert (cursor.index, cursor.line, cursor.column) == (0, 1, 1)

    def test_newline_resets_column(self):
        cursor = Cursor("ab\nc")
        for _ in range(3):
            cursor.advance()
        assert cursor.line == 2
        assert cursor.column == 1
        assert cursor.peek() == "c"

    def test_peek_past_end_is_empty(self):
        cursor = Cursor("a")
        assert cursor.peek(1) == ""
        cursor.advance()
        assert cursor.at_end()
        assert cursor.peek() == ""

    def test_letter_run_does_not_consume(self):
        cursor = Cursor("meg1")
        assert cursor.letter_run() == "meg"
        assert cursor.index == 0


# ── Numbers ───────────────────────────────────────────────────────────


class TestNumbers:
    @pytest.mark.parametrize("digits", ["0", "7", "42", "000123", "9876543210"])
    def test_digit_string_is_one_number(self, digits):
        errors = ErrorHandler()
        tokens = scan_tokens(digits, errors)
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.EOF]
        assert tokens[0].lexeme == digits
        assert not errors.has_errors()

    def test_decimal_number(self):
        tokens = scan_tokens("3.14")
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.EOF]
        assert tokens[0].lexeme == "3.14"

    def test_exponent_split_into_tokens(self):
        tokens = scan_tokens("1.2E3")
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.EXPONENT, TokenKind.NUMBER, TokenKind.EOF]
        assert lexemes(tokens) == ["1.2", "E", "3"]

    def test_signed_exponent_with_unit(self):
        tokens = scan_tokens("1e-3m")
        assert kinds(tokens)[:-1] == [
            TokenKind.NUMBER,
            TokenKind.EXPONENT,
            TokenKind.MINUS,
            TokenKind.NUMBER,
            TokenKind.UNIT,
        ]
        assert lexemes(tokens) == ["1", "e", "-", "3", "m"]

    def test_e_starting_identifier_is_not_exponent(self):
        tokens = scan_tokens("E1")
        assert kinds(tokens) == [TokenKind.IDENTIFIER, TokenKind.EOF]
        assert tokens[0].lexeme == "E1"

    def test_letters_after_e_make_a_unit(self):
        tokens = scan_tokens("1EX")
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.UNIT, TokenKind.EOF]
        assert lexemes(tokens) == ["1", "EX"]

    def test_unit_suffix_is_raw(self):
        tokens = scan_tokens("10MEG 5sadf")
        assert lexemes(tokens) == ["10", "MEG", "5", "sadf"]
        assert tokens[1].kind is TokenKind.UNIT
        assert tokens[3].kind is TokenKind.UNIT

    def test_unit_may_contain_digits(self):
        tokens = scan_tokens("12abc3")
        assert lexemes(tokens) == ["12", "abc3"]

    def test_scan_number_advances_cursor(self):
        cursor = Cursor("1.2E3k rest")
        tokens = scan_number(cursor)
        assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.EXPONENT, TokenKind.NUMBER, TokenKind.UNIT]
        assert cursor.index == 6

    def test_trailing_fraction_after_exponent_is_rejected(self):
        errors = ErrorHandler()
        tokens = scan_tokens("1.2E3.4m", errors)
        assert lexemes(tokens)[:3] == ["1.2", "E", "3"]
        assert [e.message for e in errors] == ["Unexpected command: ."]


# ── Identifiers, punctuation, directives ──────────────────────────────


class TestWordsAndPunctuation:
    def test_card_positions(self):
        tokens = scan_tokens("R1 n1 n2 10k")
        assert [(t.lexeme, t.column) for t in tokens[:-1]] == [
            ("R1", 1),
            ("n1", 4),
            ("n2", 7),
            ("10", 10),
            ("k", 12),
        ]

    def test_second_line_position(self):
        tokens = scan_tokens("R1 a b 1\nC1 a b 2")
        c1 = tokens[4]
        assert c1.lexeme == "C1"
        assert (c1.line, c1.column) == (2, 1)

    def test_punctuation(self):
        tokens = scan_tokens("V(out,2)")
        assert kinds(tokens)[:-1] == [
            TokenKind.IDENTIFIER,
            TokenKind.LPAREN,
            TokenKind.IDENTIFIER,
            TokenKind.COMMA,
            TokenKind.NUMBER,
            TokenKind.RPAREN,
        ]

    def test_all_punctuation_kinds(self):
        tokens = scan_tokens("= ( ) { } , + -")
        assert kinds(tokens)[:-1] == [
            TokenKind.EQUAL,
            TokenKind.LPAREN,
            TokenKind.RPAREN,
            TokenKind.LBRACE,
            TokenKind.RBRACE,
            TokenKind.COMMA,
            TokenKind.PLUS,
            TokenKind.MINUS,
        ]

    @pytest.mark.parametrize(
        "text, kind",
        [
            (".tran", TokenKind.TRAN),
            (".TRAN", TokenKind.TRAN),
            (".dc", TokenKind.DC),
            (".ac", TokenKind.AC),
            (".op", TokenKind.OP),
            (".subckt", TokenKind.SUBCKT),
            (".ends", TokenKind.ENDS),
            (".plot", TokenKind.PLOT),
            (".wave", TokenKind.WAVE),
        ],
    )
    def test_directive_keywords(self, text, kind):
        tokens = scan_tokens(text)
        assert tokens[0].kind is kind
        assert tokens[0].lexeme == text.lower()
        assert tokens[0].is_keyword

    def test_unknown_directive_is_lexical_error(self):
        errors = ErrorHandler()
        cursor = Cursor(".foo 1")
        assert scan_directive(cursor, errors) is None
        assert cursor.index == 4
        (error,) = errors
        assert error.kind is ErrorKind.LEXICAL
        assert error.message == "Unexpected command: .foo"
        assert (error.line, error.column) == (1, 1)


# ── Comments and errors ───────────────────────────────────────────────


class TestCommentsAndErrors:
    def test_star_comment_emits_nothing(self):
        assert kinds(scan_tokens("* R1 a b 1k")) == [TokenKind.EOF]

    def test_semicolon_comment_after_card(self):
        tokens = scan_tokens("R1 a b 1k ; load resistor")
        assert lexemes(tokens) == ["R1", "a", "b", "1", "k"]

    def test_star_at_token_start_mid_line(self):
        tokens = scan_tokens("R1 a b 1k *note")
        assert lexemes(tokens) == ["R1", "a", "b", "1", "k"]

    def test_three_bad_characters_three_errors(self):
        errors = ErrorHandler()
        scan_tokens("@R1 a b 1\nR2 a # b 2\nR3 a b 3 !\n", errors)
        lexical = errors.by_kind(ErrorKind.LEXICAL)
        assert len(errors) == 3
        assert [(e.line, e.column) for e in lexical] == [(1, 1), (2, 6), (3, 10)]
        assert [e.message for e in lexical] == [
            "Unexpected character: @",
            "Unexpected character: #",
            "Unexpected character: !",
        ]

    def test_scanning_resumes_after_bad_character(self):
        errors = ErrorHandler()
        tokens = scan_tokens("R1 a$ b 1", errors)
        assert lexemes(tokens) == ["R1", "a", "b", "1"]
        assert len(errors) == 1


# ── Termination ───────────────────────────────────────────────────────


class TestTermination:
    def test_empty_source_yields_eof(self):
        tokens = scan_tokens("")
        assert kinds(tokens) == [TokenKind.EOF]
        assert tokens[0].lexeme == ""

    def test_stops_after_end(self):
        tokens = scan_tokens("R1 a b 1\n.end\nR2 c d @\n")
        assert kinds(tokens)[-2:] == [TokenKind.END, TokenKind.EOF]
        assert "R2" not in lexemes(tokens)

    def test_nothing_scanned_after_end_is_reported(self):
        errors = ErrorHandler()
        scan_tokens(".end\n@@@\n", errors)
        assert not errors.has_errors()
