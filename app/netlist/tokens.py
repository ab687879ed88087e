"""
netlist/tokens.py

Token and Card value types produced by the tokenizer.
"""

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    UNIT = "unit"
    EXPONENT = "exponent"

    # Simulation directives
    END = ".end"
    ENDS = ".ends"
    TRAN = ".tran"
    DC = ".dc"
    AC = ".ac"
    OP = ".op"
    SUBCKT = ".subckt"
    PLOT = ".plot"
    WAVE = ".wave"

    EQUAL = "="
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    PLUS = "+"
    MINUS = "-"

    EOF = "eof"


# Lower-cased directive text (dot included) -> keyword kind
KEYWORDS = {
    kind.value: kind
    for kind in (
        TokenKind.END,
        TokenKind.ENDS,
        TokenKind.TRAN,
        TokenKind.DC,
        TokenKind.AC,
        TokenKind.OP,
        TokenKind.SUBCKT,
        TokenKind.PLOT,
        TokenKind.WAVE,
    )
}

PUNCTUATION = {
    kind.value: kind
    for kind in (
        TokenKind.EQUAL,
        TokenKind.LPAREN,
        TokenKind.RPAREN,
        TokenKind.LBRACE,
        TokenKind.RBRACE,
        TokenKind.COMMA,
        TokenKind.PLUS,
        TokenKind.MINUS,
    )
}

SIGNS = (TokenKind.PLUS, TokenKind.MINUS)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    line: int
    column: int
    lexeme: str

    @property
    def is_keyword(self) -> bool:
        return self.kind in KEYWORDS.values()

    @property
    def end_column(self) -> int:
        return self.column + len(self.lexeme)

    def touches(self, other: "Token") -> bool:
        """True when `other` starts right where this token ends, on the same line."""
        return other.line == self.line and other.column == self.end_column

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.lexeme!r}, {self.line}:{self.column})"


@dataclass(frozen=True)
class Card:
    """One logical netlist statement: a non-empty run of tokens."""

    tokens: tuple[Token, ...]

    def __post_init__(self):
        if not self.tokens:
            raise ValueError("A card must contain at least one token")

    @property
    def first(self) -> Token:
        return self.tokens[0]

    @property
    def line(self) -> int:
        return self.tokens[0].line

    @property
    def leading_char(self) -> str:
        return self.first.lexeme[:1].upper()

    @property
    def is_eof(self) -> bool:
        return self.first.kind is TokenKind.EOF

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self):
        return iter(self.tokens)

    def __getitem__(self, index):
        return self.tokens[index]

    def text(self) -> str:
        return " ".join(t.lexeme for t in self.tokens)
