"""
SPICE netlist front end: tokenizer, card assembler, parser and writer.

    result = parse_netlist(text)
    circuit, errors = result
"""

from .errors import ErrorHandler, ErrorKind, NetlistError, NetlistParseError
from .parser import NetlistParser, ParseResult, parse, parse_netlist, parse_value
from .symbol_table import DuplicateDefinition, ScopeError, SymbolError, SymbolKind, SymbolTable, UndefinedSymbol
from .tokenizer import Tokenizer, scan_tokens, tokenize
from .tokens import Card, Token, TokenKind
from .units import UNIT_SCALES, format_value, unit_scale
from .writer import NetlistWriter, write_netlist

__all__ = [
    "parse_netlist",
    "parse",
    "parse_value",
    "tokenize",
    "scan_tokens",
    "Tokenizer",
    "NetlistParser",
    "ParseResult",
    "NetlistWriter",
    "write_netlist",
    "ErrorHandler",
    "ErrorKind",
    "NetlistError",
    "NetlistParseError",
    "SymbolTable",
    "SymbolKind",
    "SymbolError",
    "DuplicateDefinition",
    "UndefinedSymbol",
    "ScopeError",
    "Token",
    "TokenKind",
    "Card",
    "UNIT_SCALES",
    "unit_scale",
    "format_value",
]
