"""
netlist/grammar.py

Device grammar registry: one descriptor per SPICE leading letter.

The parser looks a card's leading character up here instead of branching
per letter, so supporting another device kind is a data change:

    R1 n1 n2 1k          -> Resistor, 2 terminals, numeric value
    X1 a b c FILTER      -> subcircuit instance, any number of terminals
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

from models.component import Capacitor, CurrentSource, Inductor, Resistor, VoltageSource


class ValueShape(Enum):
    NUMERIC = "numeric"
    SUBCIRCUIT_REF = "subcircuit"


@dataclass(frozen=True)
class DeviceGrammar:
    letter: str
    description: str
    # None means variable (checked against the subcircuit's ports)
    terminals: Optional[int]
    value: ValueShape
    model: Optional[type] = None
    # Sources accept "DC" before their value
    dc_keyword: bool = False


DEVICE_GRAMMARS = MappingProxyType(
    {
        g.letter: g
        for g in (
            DeviceGrammar("R", "Resistor", 2, ValueShape.NUMERIC, Resistor),
            DeviceGrammar("C", "Capacitor", 2, ValueShape.NUMERIC, Capacitor),
            DeviceGrammar("L", "Inductor", 2, ValueShape.NUMERIC, Inductor),
            DeviceGrammar("V", "Independent voltage source", 2, ValueShape.NUMERIC, VoltageSource, dc_keyword=True),
            DeviceGrammar("I", "Independent current source", 2, ValueShape.NUMERIC, CurrentSource, dc_keyword=True),
            DeviceGrammar("X", "Subcircuit invocation", None, ValueShape.SUBCIRCUIT_REF),
        )
    }
)

# Model variant -> SPICE letter, for writing netlists back out
MODEL_LETTERS = MappingProxyType({g.model: g.letter for g in DEVICE_GRAMMARS.values() if g.model is not None})

AC_SWEEP_TYPES = ("dec", "oct", "lin")

# Optional analysis name accepted at the start of .plot/.wave
PLOT_ANALYSES = ("tran", "dc", "ac", "op")

# Probe function letter -> what its arguments name
PROBE_KINDS = MappingProxyType({"V": "node", "I": "component"})


def grammar_for(letter: str) -> Optional[DeviceGrammar]:
    return DEVICE_GRAMMARS.get(letter.upper())
