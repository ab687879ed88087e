"""
netlist/tokenizer.py

Turns netlist source text into typed tokens and groups them into cards.

Scanning state lives in an explicit Cursor that each scanning function
receives and advances, so every step can be exercised on its own:

    cursor = Cursor("1.2E3k")
    scan_number(cursor)   # NUMBER 1.2, EXPONENT E, NUMBER 3, UNIT k

Unit suffixes are emitted raw; their meaning is decided by the parser.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from .errors import ErrorHandler, ErrorKind
from .tokens import KEYWORDS, PUNCTUATION, Card, Token, TokenKind

logger = logging.getLogger(__name__)

_DIGITS = "0123456789"
_COMMENT_STARTS = ("*", ";")
_BLANKS = (" ", "\t", "\r")


def is_digit(ch: str) -> bool:
    return len(ch) == 1 and ch in _DIGITS


def is_alpha(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def is_alnum(ch: str) -> bool:
    return is_alpha(ch) or is_digit(ch)


@dataclass
class Cursor:
    """Read position in the source: absolute index plus 1-based line/column."""

    source: str
    index: int = 0
    line: int = 1
    column: int = 1

    def at_end(self) -> bool:
        return self.index >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Character at index + offset, or "" past the end."""
        i = self.index + offset
        if i < len(self.source):
            return self.source[i]
        return ""

    def advance(self) -> str:
        ch = self.source[self.index]
        self.index += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def consume_while(self, predicate) -> str:
        start = self.index
        while predicate(self.peek()):
            self.advance()
        return self.source[start : self.index]

    def letter_run(self) -> str:
        """The run of letters at the cursor, without consuming it."""
        end = self.index
        while end < len(self.source) and is_alpha(self.source[end]):
            end += 1
        return self.source[self.index : end]


# ── Scanning steps ────────────────────────────────────────────────────


def skip_comment(cursor: Cursor) -> None:
    """Consume everything up to (not including) the end of the line."""
    while not cursor.at_end() and cursor.peek() != "\n":
        cursor.advance()


def scan_word(cursor: Cursor, kind: TokenKind = TokenKind.IDENTIFIER) -> Token:
    """Scan `[A-Za-z_][A-Za-z0-9_]*` as one token of the given kind."""
    line, column = cursor.line, cursor.column
    text = cursor.advance() + cursor.consume_while(is_alnum)
    return Token(kind, line, column, text)


def scan_digits(cursor: Cursor) -> Token:
    line, column = cursor.line, cursor.column
    return Token(TokenKind.NUMBER, line, column, cursor.consume_while(is_digit))


def scan_number(cursor: Cursor) -> list[Token]:
    """
    Scan a numeric literal starting at a digit.

    Emits the unsigned decimal, then, when the letters right after it are
    exactly "E"/"e", an exponent marker, an optional sign and the exponent
    digits. Any other letters touching the digits become a UNIT token.
    """
    line, column = cursor.line, cursor.column
    start = cursor.index
    cursor.consume_while(is_digit)
    if cursor.peek() == "." and is_digit(cursor.peek(1)):
        cursor.advance()
        cursor.consume_while(is_digit)
    tokens = [Token(TokenKind.NUMBER, line, column, cursor.source[start : cursor.index])]

    if cursor.letter_run() in ("E", "e"):
        tokens.append(Token(TokenKind.EXPONENT, cursor.line, cursor.column, cursor.advance()))
        if cursor.peek() in ("+", "-"):
            sign_line, sign_column = cursor.line, cursor.column
            sign = cursor.advance()
            tokens.append(Token(PUNCTUATION[sign], sign_line, sign_column, sign))
        if is_digit(cursor.peek()):
            tokens.append(scan_digits(cursor))

    if is_alpha(cursor.peek()):
        tokens.append(scan_word(cursor, TokenKind.UNIT))
    return tokens


def scan_directive(cursor: Cursor, errors: ErrorHandler) -> Optional[Token]:
    """Scan `.word`; unknown directives are recorded and yield no token."""
    line, column = cursor.line, cursor.column
    cursor.advance()
    text = "." + cursor.consume_while(is_alpha).lower()
    kind = KEYWORDS.get(text)
    if kind is None:
        errors.add(ErrorKind.LEXICAL, f"Unexpected command: {text}", line, column)
        return None
    return Token(kind, line, column, text)


def scan_token(cursor: Cursor, errors: ErrorHandler) -> list[Token]:
    """Scan whatever starts at the cursor. Returns zero or more tokens."""
    ch = cursor.peek()

    if ch in _COMMENT_STARTS:
        skip_comment(cursor)
        return []
    if ch in _BLANKS or ch == "\n":
        cursor.advance()
        return []
    if ch == ".":
        token = scan_directive(cursor, errors)
        return [token] if token else []
    if ch in PUNCTUATION:
        line, column = cursor.line, cursor.column
        return [Token(PUNCTUATION[cursor.advance()], line, column, ch)]
    if is_alpha(ch):
        return [scan_word(cursor)]
    if is_digit(ch):
        return scan_number(cursor)

    errors.add(ErrorKind.LEXICAL, f"Unexpected character: {ch}", cursor.line, cursor.column)
    cursor.advance()
    return []


# ── Card assembly ─────────────────────────────────────────────────────


class CardAssembler:
    """
    Groups a token stream into cards.

    A token starting a new physical line starts a new card, except a
    leading "+", which is dropped and continues the current card.

    `rejected_lines` holds lines that opened with an unknown directive. The
    card such a line starts, continuation lines included, is dropped.
    """

    def __init__(self, errors: ErrorHandler, rejected_lines=()):
        self._errors = errors
        self._rejected = rejected_lines
        self._cards: list[Card] = []
        self._current: list[Token] = []
        self._line = 0
        self._dropping = False

    def feed(self, token: Token) -> None:
        new_line = token.line != self._line
        # Rejected lines since the previous token, this token's own included
        passed = [r for r in self._rejected if self._line < r <= token.line] if new_line else []
        self._line = token.line
        if passed:
            self._close()

        if new_line and token.kind is TokenKind.PLUS:
            if self._dropping or passed:
                self._dropping = True
            elif not self._current:
                self._errors.add(
                    ErrorKind.SYNTAX,
                    "Continuation line without a preceding card",
                    token.line,
                    token.column,
                )
            return

        if new_line:
            self._close()
            self._dropping = token.line in passed
        if not self._dropping:
            self._current.append(token)

    def finish(self, eof: Token) -> list[Card]:
        """Close the open card and append the EOF card."""
        self._close()
        self._cards.append(Card((eof,)))
        return self._cards

    def _close(self) -> None:
        if self._current:
            self._cards.append(Card(tuple(self._current)))
            self._current = []


# ── Public API ────────────────────────────────────────────────────────


class Tokenizer:
    """Scans one source text. Stops after `.end` or at end of input."""

    def __init__(self, text: str, errors: Optional[ErrorHandler] = None):
        self.text = text
        self.errors = errors if errors is not None else ErrorHandler()
        # Lines whose first token was an unknown directive
        self.rejected_lines: set[int] = set()

    def tokens(self) -> Iterator[Token]:
        cursor = Cursor(self.text)
        last_line = 0
        while not cursor.at_end():
            line, ch = cursor.line, cursor.peek()
            tokens = scan_token(cursor, self.errors)
            if ch == "." and not tokens and line != last_line:
                self.rejected_lines.add(line)
            for token in tokens:
                last_line = token.line
                yield token
                if token.kind is TokenKind.END:
                    yield Token(TokenKind.EOF, cursor.line, cursor.column, "")
                    return
        yield Token(TokenKind.EOF, cursor.line, cursor.column, "")

    def cards(self) -> list[Card]:
        assembler = CardAssembler(self.errors, self.rejected_lines)
        for token in self.tokens():
            if token.kind is TokenKind.EOF:
                cards = assembler.finish(token)
                logger.debug("tokenized %d cards", len(cards))
                return cards
            assembler.feed(token)
        raise AssertionError("token stream ended without EOF")


def scan_tokens(text: str, errors: Optional[ErrorHandler] = None) -> list[Token]:
    """Flat token stream (EOF included), mostly for inspection and tests."""
    return list(Tokenizer(text, errors).tokens())


def tokenize(text: str, errors: Optional[ErrorHandler] = None) -> tuple[list[Card], ErrorHandler]:
    """
    Tokenize netlist text into cards.

    Args:
        text: Netlist source.
        errors: Handler to record into; a new one is created when omitted.

    Returns:
        (cards, errors). The last card always holds just the EOF token.
    """
    tokenizer = Tokenizer(text, errors)
    return tokenizer.cards(), tokenizer.errors
