"""
netlist/parser.py

Turns cards into a Circuit.

Each card is dispatched on the upper-cased first character of its first
lexeme: device letters go through the DEVICE_GRAMMARS registry, "." goes to
the directive handlers. Problems are recorded in the shared ErrorHandler
and only ever skip the card they occur on, so one pass reports everything.

Names that may legally appear before their definition (subcircuit names on
X cards, probe targets, the .dc source) are collected as references and
resolved once every card has been read.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Optional

from models.circuit import Circuit, ParameterConflict, Probe, SimulationType, Subcircuit
from models.component import Component
from models.node import Node, reserved_node

from .errors import ErrorHandler, ErrorKind, NetlistParseError
from .grammar import AC_SWEEP_TYPES, PLOT_ANALYSES, PROBE_KINDS, DeviceGrammar, ValueShape, grammar_for
from .symbol_table import DuplicateDefinition, Scope, SymbolKind, SymbolTable, UndefinedSymbol
from .tokenizer import tokenize
from .tokens import SIGNS, Card, Token, TokenKind
from .units import unit_scale

logger = logging.getLogger(__name__)

Field = tuple[Token, ...]


# ── Token cursor and numeric literals ─────────────────────────────────


class TokenCursor:
    """Read position over a run of tokens."""

    def __init__(self, tokens, index: int = 0):
        self.tokens = tuple(tokens)
        self.index = index

    def at_end(self) -> bool:
        return self.index >= len(self.tokens)

    def peek(self, offset: int = 0) -> Optional[Token]:
        i = self.index + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return None

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def check(self, *kinds: TokenKind) -> bool:
        token = self.peek()
        return token is not None and token.kind in kinds

    def location(self) -> tuple[int, int]:
        """Position of the next token, or just past the last one."""
        token = self.peek()
        if token is not None:
            return token.line, token.column
        if self.tokens:
            last = self.tokens[-1]
            return last.line, last.end_column
        return 0, 0


def parse_value(cursor: TokenCursor, errors: ErrorHandler) -> float:
    """
    Read `[sign] NUMBER [EXPONENT [sign] NUMBER] [UNIT]` at the cursor.

    A missing mantissa records "Expected number", consumes nothing and
    yields 0.0. A missing exponent records "Expected number after E" and
    the exponent is taken as 0. Unrecognised units scale by 1.
    """
    negative = False
    first, second = cursor.peek(), cursor.peek(1)
    if first is not None and first.kind in SIGNS and second is not None and second.kind is TokenKind.NUMBER:
        negative = cursor.advance().kind is TokenKind.MINUS

    if not cursor.check(TokenKind.NUMBER):
        errors.add(ErrorKind.SYNTAX, "Expected number", *cursor.location())
        return 0.0
    mantissa = cursor.advance().lexeme

    exponent = "0"
    if cursor.check(TokenKind.EXPONENT):
        cursor.advance()
        exp_sign = ""
        if cursor.check(*SIGNS):
            exp_sign = cursor.advance().lexeme
        if cursor.check(TokenKind.NUMBER):
            exponent = exp_sign + cursor.advance().lexeme
        else:
            errors.add(ErrorKind.SYNTAX, "Expected number after E", *cursor.location())

    scale = 1.0
    if cursor.check(TokenKind.UNIT):
        scale = unit_scale(cursor.advance().lexeme)

    value = float(f"{mantissa}e{exponent}") * scale
    return -value if negative else value


# ── Field grouping ────────────────────────────────────────────────────


def _adjacent(tokens, i: int, prev: Token, *kinds: TokenKind) -> bool:
    return i < len(tokens) and tokens[i].kind in kinds and prev.touches(tokens[i])


def split_fields(tokens) -> list[Field]:
    """
    Group tokens into fields.

    A numeric field is `[sign] NUMBER [EXPONENT [sign] NUMBER] [UNIT]` with
    every part touching the previous one. Any other token is a field by
    itself.
    """
    tokens = tuple(tokens)
    fields: list[Field] = []
    i = 0
    while i < len(tokens):
        group = [tokens[i]]
        i += 1
        if group[0].kind in SIGNS and _adjacent(tokens, i, group[0], TokenKind.NUMBER):
            group.append(tokens[i])
            i += 1
        if group[-1].kind is TokenKind.NUMBER:
            if _adjacent(tokens, i, group[-1], TokenKind.EXPONENT):
                group.append(tokens[i])
                i += 1
                if _adjacent(tokens, i, group[-1], *SIGNS):
                    group.append(tokens[i])
                    i += 1
                if _adjacent(tokens, i, group[-1], TokenKind.NUMBER):
                    group.append(tokens[i])
                    i += 1
            if _adjacent(tokens, i, group[-1], TokenKind.UNIT):
                group.append(tokens[i])
                i += 1
        fields.append(tuple(group))
    return fields


def field_text(fld: Field) -> str:
    return "".join(t.lexeme for t in fld)


def is_identifier(fld: Field) -> bool:
    return len(fld) == 1 and fld[0].kind is TokenKind.IDENTIFIER


def node_name(fld: Field) -> Optional[str]:
    """Name a field spells as a node reference (`out`, `12`, `1a`), or None."""
    if is_identifier(fld):
        return fld[0].lexeme
    kinds = tuple(t.kind for t in fld)
    if kinds in ((TokenKind.NUMBER,), (TokenKind.NUMBER, TokenKind.UNIT)):
        return field_text(fld)
    return None


# ── Parser ────────────────────────────────────────────────────────────


@dataclass
class Reference:
    """A name used before it can be checked; resolved after the last card."""

    name: str
    kind: SymbolKind
    scope: Scope
    token: Token
    instance: Optional[Component] = None


@dataclass
class _OpenSubcircuit:
    scope: Scope
    record: Subcircuit
    token: Token


@dataclass
class ParseResult:
    """
    Outcome of one parse. Unpacks as `(circuit, errors)`.

        circuit, errors = parse_netlist(text)
    """

    circuit: Circuit
    errors: ErrorHandler
    cards: list[Card] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors.has_errors()

    def raise_for_errors(self) -> None:
        if self.errors.has_errors():
            raise NetlistParseError(self.errors)

    def __iter__(self):
        return iter((self.circuit, self.errors))


class NetlistParser:
    """One-shot parser: create one per parse."""

    def __init__(self, errors: Optional[ErrorHandler] = None):
        self.errors = errors if errors is not None else ErrorHandler()
        self.symbols = SymbolTable()
        self.circuit = Circuit()
        self._open: list[_OpenSubcircuit] = []
        self._references: list[Reference] = []
        self._net_ids = itertools.count(1)
        self._directives = {
            TokenKind.TRAN: self._parse_tran,
            TokenKind.DC: self._parse_dc,
            TokenKind.AC: self._parse_ac,
            TokenKind.OP: self._parse_op,
            TokenKind.PLOT: self._parse_plot,
            TokenKind.WAVE: self._parse_plot,
            TokenKind.SUBCKT: self._parse_subckt,
            TokenKind.ENDS: self._parse_ends,
        }

    def parse(self, cards, name: str = "circuit") -> Circuit:
        self.circuit.name = name
        for card in cards:
            first = card.first
            if first.kind in (TokenKind.EOF, TokenKind.END):
                break
            logger.debug("card %d: %s", card.line, card.text())
            if first.is_keyword:
                self._directives[first.kind](card)
                continue
            grammar = grammar_for(card.leading_char) if first.kind is TokenKind.IDENTIFIER else None
            if grammar is None:
                self._error(ErrorKind.SYNTAX, f"Unknown leading character: {card.leading_char}", first)
            elif grammar.value is ValueShape.SUBCIRCUIT_REF:
                self._parse_instance(card, grammar)
            else:
                self._parse_device(card, grammar)

        self._close_unterminated()
        self._resolve_references()
        logger.info(
            "parsed %s: %d components, %d nodes, %d subcircuits, %d errors",
            self.circuit.name,
            len(self.circuit.components),
            len(self.circuit.nodes),
            len(self.circuit.subcircuits),
            len(self.errors),
        )
        return self.circuit

    # --- helpers ---

    def _error(self, kind: ErrorKind, message: str, token: Token) -> None:
        self.errors.add(kind, message, token.line, token.column)

    def _apply_params(self, values: dict, token: Token) -> bool:
        """Apply one directive's settings, all or none."""
        try:
            self.circuit.sim_params.apply(values)
        except ParameterConflict as exc:
            self._error(ErrorKind.SEMANTIC, str(exc), token)
            return False
        return True

    def _local_nodes(self) -> dict:
        if self._open:
            return self._open[-1].record.nodes
        return self.circuit.nodes

    def _local_components(self) -> dict:
        if self._open:
            return self._open[-1].record.components
        return self.circuit.components

    def _terminal(self, fld: Field, owner: Optional[Token] = None) -> Optional[str]:
        """
        Check a terminal field without registering anything.

        Returns the node key (reserved names lower-cased), or None after
        recording why the field cannot name a node. `owner` is the card's
        instance name, which is declared only once every terminal passes.
        """
        name = node_name(fld)
        if name is None:
            self._error(ErrorKind.SYNTAX, f"Expected node name, found {field_text(fld)}", fld[0])
            return None

        reserved = reserved_node(name.lower())
        if reserved is not None:
            entry = self.symbols.lookup(reserved.name, self.symbols.global_scope)
            if entry is not None and entry.kind is not SymbolKind.NODE:
                self._error(ErrorKind.SEMANTIC, f"{reserved.name} is not a node", fld[0])
                return None
            return reserved.name

        entry = self.symbols.lookup(name)
        if entry is not None and entry.kind is not SymbolKind.NODE:
            self._error(ErrorKind.SEMANTIC, f"{name} is already declared as a {entry.kind.value}", fld[0])
            return None
        if owner is not None and name == owner.lexeme:
            self._error(ErrorKind.SEMANTIC, f"{name} is already declared as a component", fld[0])
            return None
        return name

    def _terminals(self, fields: list[Field], owner: Token) -> Optional[list[str]]:
        names = [self._terminal(f, owner) for f in fields]
        if None in names:
            return None
        return names

    def _node(self, name: str) -> Node:
        """Node for a checked terminal name, registering new nets in the active frame."""
        reserved = reserved_node(name)
        if reserved is not None:
            # Ground and Vdd are shared by every scope
            if self.symbols.lookup(name, self.symbols.global_scope) is None:
                self.symbols.declare(name, SymbolKind.NODE, self.symbols.global_scope)
                self.circuit.add_node(reserved)
            return self.circuit.nodes[name]

        nodes = self._local_nodes()
        if self.symbols.lookup(name) is None:
            self.symbols.declare(name, SymbolKind.NODE)
            nodes[name] = Node.net(next(self._net_ids), name)
        return nodes[name]

    def _declare_component(self, token: Token) -> bool:
        try:
            self.symbols.declare(token.lexeme, SymbolKind.COMPONENT)
        except DuplicateDefinition as exc:
            self._error(ErrorKind.SEMANTIC, str(exc), token)
            return False
        return True

    def _reference(self, name: str, kind: SymbolKind, token: Token, scope: Optional[Scope] = None, instance=None):
        self._references.append(Reference(name, kind, scope or self.symbols.active, token, instance))

    def _trailing(self, fields: list[Field], directive: Token) -> None:
        if fields:
            self._error(
                ErrorKind.SYNTAX,
                f"Unexpected {field_text(fields[0])} after {directive.lexeme}",
                fields[0][0],
            )

    def _numbers(self, fields: list[Field], count: int, card: Card) -> Optional[list[float]]:
        """Read `count` numeric fields; None (after recording) if any are missing."""
        if len(fields) < count:
            last = card.tokens[-1]
            self.errors.add(ErrorKind.SYNTAX, "Expected number", last.line, last.end_column)
            return None
        return [parse_value(TokenCursor(f), self.errors) for f in fields[:count]]

    # --- device cards ---

    def _parse_device(self, card: Card, grammar: DeviceGrammar) -> None:
        name_token = card.first
        fields = split_fields(card.tokens[1:])
        if grammar.dc_keyword and len(fields) >= 3 and is_identifier(fields[2]):
            if fields[2][0].lexeme.upper() == "DC":
                del fields[2]

        if len(fields) <= grammar.terminals:
            node_fields, value_field = fields, None
        else:
            node_fields, value_field = fields[:-1], fields[-1]
        if len(node_fields) != grammar.terminals:
            self._error(
                ErrorKind.SYNTAX,
                f"Wrong number of nodes for {name_token.lexeme}: expected {grammar.terminals}, found {len(node_fields)}",
                name_token,
            )
            return

        names = self._terminals(node_fields, name_token)
        if names is None or not self._declare_component(name_token):
            return
        terminals = [self._node(n) for n in names]

        if value_field is None:
            last = card.tokens[-1]
            self.errors.add(ErrorKind.SYNTAX, "Expected number", last.line, last.end_column)
            value = 0.0
        else:
            cursor = TokenCursor(value_field)
            value = parse_value(cursor, self.errors)

        component = Component(name_token.lexeme, tuple(terminals), model=grammar.model(value), line=name_token.line)
        self._local_components()[component.name] = component

    def _parse_instance(self, card: Card, grammar: DeviceGrammar) -> None:
        name_token = card.first
        fields = split_fields(card.tokens[1:])
        if not fields or not is_identifier(fields[-1]):
            found = field_text(fields[-1]) if fields else "end of card"
            token = fields[-1][0] if fields else name_token
            self._error(ErrorKind.SYNTAX, f"Expected subcircuit name for {name_token.lexeme}, found {found}", token)
            return

        names = self._terminals(fields[:-1], name_token)
        if names is None or not self._declare_component(name_token):
            return
        terminals = [self._node(n) for n in names]

        subckt_token = fields[-1][0]
        component = Component(name_token.lexeme, tuple(terminals), subcircuit=subckt_token.lexeme, line=name_token.line)
        self._local_components()[component.name] = component
        self._reference(
            subckt_token.lexeme,
            SymbolKind.SUBCIRCUIT,
            subckt_token,
            scope=self.symbols.global_scope,
            instance=component,
        )

    # --- analysis directives ---

    def _parse_tran(self, card: Card) -> None:
        directive = card.first
        fields = split_fields(card.tokens[1:])
        values = self._numbers(fields, min(max(len(fields), 2), 3), card)
        if values is None:
            return
        self._trailing(fields[3:], directive)
        params = {"sim_type": SimulationType.TRAN, "time_step": values[0], "stop_time": values[1]}
        if len(values) == 3:
            params["start_time"] = values[2]
        self._apply_params(params, directive)

    def _parse_dc(self, card: Card) -> None:
        directive = card.first
        fields = split_fields(card.tokens[1:])
        if not fields or not is_identifier(fields[0]):
            token = fields[0][0] if fields else directive
            self._error(ErrorKind.SYNTAX, "Expected source name after .dc", token)
            return
        values = self._numbers(fields[1:], 3, card)
        if values is None:
            return
        self._trailing(fields[4:], directive)
        source = fields[0][0]
        params = {"sim_type": SimulationType.DC, "dc_source": source.lexeme}
        params.update(zip(("dc_start", "dc_stop", "dc_step"), values))
        if self._apply_params(params, directive):
            self._reference(source.lexeme, SymbolKind.COMPONENT, source)

    def _parse_ac(self, card: Card) -> None:
        directive = card.first
        fields = split_fields(card.tokens[1:])
        sweep = fields[0][0].lexeme.lower() if fields and is_identifier(fields[0]) else None
        if sweep not in AC_SWEEP_TYPES:
            found = field_text(fields[0]) if fields else "end of card"
            token = fields[0][0] if fields else directive
            self._error(ErrorKind.SYNTAX, f"Unknown AC sweep type: {found} (expected dec, oct or lin)", token)
            return
        values = self._numbers(fields[1:], 3, card)
        if values is None:
            return
        self._trailing(fields[4:], directive)
        params = {"sim_type": SimulationType.AC, "sweep_type": sweep}
        params.update(zip(("points", "start_freq", "stop_freq"), values))
        self._apply_params(params, directive)

    def _parse_op(self, card: Card) -> None:
        self._trailing(split_fields(card.tokens[1:]), card.first)
        self._apply_params({"sim_type": SimulationType.OP}, card.first)

    def _parse_plot(self, card: Card) -> None:
        """`.plot [analysis] V(a) V(a,b) I(R1) ...`"""
        directive = card.first
        fields = split_fields(card.tokens[1:])
        analysis = None
        if fields and is_identifier(fields[0]) and fields[0][0].lexeme.lower() in PLOT_ANALYSES:
            analysis = fields.pop(0)[0].lexeme.lower()

        probes: list[tuple[Probe, list[Token]]] = []
        i = 0
        while i < len(fields):
            parsed = self._probe(fields, i, analysis, directive)
            if parsed is None:
                return
            probe, ref_tokens, i = parsed
            probes.append((probe, ref_tokens))
        if not probes:
            self._error(ErrorKind.SYNTAX, f"Expected at least one probe after {directive.lexeme}", directive)
            return

        for probe, ref_tokens in probes:
            self.circuit.probes.append(probe)
            kind = SymbolKind.NODE if PROBE_KINDS[probe.kind] == "node" else SymbolKind.COMPONENT
            for token, ref in zip(ref_tokens, probe.refs):
                if kind is SymbolKind.NODE and reserved_node(ref) is not None:
                    continue
                self._reference(ref, kind, token)

    def _probe(self, fields: list[Field], i: int, analysis, directive: Token):
        """Parse one `V(...)`/`I(...)` starting at fields[i]; returns (probe, ref tokens, next index)."""
        head = fields[i]
        letter = head[0].lexeme.upper() if is_identifier(head) else None
        if letter not in PROBE_KINDS or i + 1 >= len(fields) or fields[i + 1][0].kind is not TokenKind.LPAREN:
            self._error(ErrorKind.SYNTAX, f"Expected V(...) or I(...), found {field_text(head)}", head[0])
            return None

        refs: list[str] = []
        tokens: list[Token] = []
        j = i + 2
        while True:
            if j >= len(fields):
                self._error(ErrorKind.SYNTAX, f"Unclosed {letter}( in {directive.lexeme}", head[0])
                return None
            name = node_name(fields[j])
            if name is None:
                found = field_text(fields[j])
                self._error(ErrorKind.SYNTAX, f"Expected name in {letter}(...), found {found}", fields[j][0])
                return None
            refs.append(name)
            tokens.append(fields[j][0])
            j += 1
            if j < len(fields) and fields[j][0].kind is TokenKind.COMMA:
                j += 1
                continue
            if j < len(fields) and fields[j][0].kind is TokenKind.RPAREN:
                j += 1
                break
            self._error(ErrorKind.SYNTAX, f"Unclosed {letter}( in {directive.lexeme}", head[0])
            return None

        limit = 2 if letter == "V" else 1
        if len(refs) > limit:
            self._error(ErrorKind.SYNTAX, f"{letter}(...) takes at most {limit} name(s), found {len(refs)}", head[0])
            return None
        enclosing = self._open[-1].record.name if self._open else None
        return Probe(letter, tuple(refs), analysis, head[0].line, enclosing), tokens, j

    # --- subcircuit scopes ---

    def _parse_subckt(self, card: Card) -> None:
        directive = card.first
        fields = split_fields(card.tokens[1:])
        if not fields or not is_identifier(fields[0]):
            token = fields[0][0] if fields else directive
            self._error(ErrorKind.SYNTAX, "Expected subcircuit name after .subckt", token)
            return
        name = fields[0][0].lexeme
        record = Subcircuit(name, line=directive.line)
        try:
            self.symbols.declare(name, SymbolKind.SUBCIRCUIT, self.symbols.global_scope)
            self.circuit.subcircuits[name] = record
        except DuplicateDefinition as exc:
            # The body is still scoped so its .ends pairs up
            self._error(ErrorKind.SEMANTIC, str(exc), fields[0][0])

        scope = self.symbols.push(name)
        self._open.append(_OpenSubcircuit(scope, record, directive))
        for fld in fields[1:]:
            port = node_name(fld)
            if port is None:
                self._error(ErrorKind.SYNTAX, f"Expected port name, found {field_text(fld)}", fld[0])
                continue
            if reserved_node(port.lower()) is None:
                try:
                    self.symbols.declare(port, SymbolKind.NODE)
                except DuplicateDefinition as exc:
                    self._error(ErrorKind.SEMANTIC, str(exc), fld[0])
                    continue
                record.nodes[port] = Node.net(next(self._net_ids), port)
            else:
                key = self._terminal(fld)
                if key is None:
                    continue
                self._node(key)
            record.ports.append(port)

    def _parse_ends(self, card: Card) -> None:
        directive = card.first
        fields = split_fields(card.tokens[1:])
        if not self._open:
            self._error(ErrorKind.SYNTAX, "Unexpected .ends without an open .subckt", directive)
            return
        current = self._open.pop()
        self.symbols.pop()
        if fields:
            name = field_text(fields[0])
            if name != current.record.name:
                self._error(
                    ErrorKind.SYNTAX,
                    f"Mismatched .ends: expected {current.record.name}, found {name}",
                    fields[0][0],
                )
            self._trailing(fields[1:], directive)

    def _close_unterminated(self) -> None:
        for current in self._open:
            self._error(ErrorKind.SYNTAX, f"Unclosed .subckt {current.record.name}", current.token)
        while self._open:
            self._open.pop()
            self.symbols.pop()

    # --- deferred references ---

    def _resolve_references(self) -> None:
        for ref in self._references:
            try:
                entry = self.symbols.resolve(ref.name, ref.scope, ref.kind)
            except UndefinedSymbol as exc:
                self._error(ErrorKind.SEMANTIC, str(exc), ref.token)
                continue
            if entry.kind is not ref.kind:
                self._error(
                    ErrorKind.SEMANTIC,
                    f"{ref.name} is a {entry.kind.value}, expected a {ref.kind.value}",
                    ref.token,
                )
                continue
            if ref.instance is not None:
                self._check_ports(ref)

    def _check_ports(self, ref: Reference) -> None:
        instance = ref.instance
        subckt = self.circuit.subcircuits.get(ref.name)
        if subckt is None or len(subckt.ports) == len(instance.terminals):
            return
        self._error(
            ErrorKind.SYNTAX,
            f"Wrong number of nodes for {instance.name}: expected {len(subckt.ports)}, found {len(instance.terminals)}",
            ref.token,
        )


# ── Public API ────────────────────────────────────────────────────────


def parse(cards, errors: Optional[ErrorHandler] = None, name: str = "circuit") -> tuple[Circuit, ErrorHandler]:
    """
    Parse tokenized cards into a Circuit.

    Returns:
        (circuit, errors). The circuit is best-effort when errors were recorded.
    """
    parser = NetlistParser(errors)
    return parser.parse(cards, name), parser.errors


def parse_netlist(text: str, name: str = "circuit") -> ParseResult:
    """
    Tokenize and parse netlist text in one call.

    Args:
        text: Netlist source.
        name: Name given to the resulting circuit.

    Returns:
        ParseResult with the circuit, the shared error list and the cards.
    """
    cards, errors = tokenize(text)
    circuit, errors = parse(cards, errors, name)
    return ParseResult(circuit, errors, cards)
