"""
Component - Pure Python data model for device instances.

Device parameters are a closed set of model variants, one frozen record per
device kind. Adding a device kind means adding a variant here and a grammar
entry in netlist/grammar.py.
"""

from dataclasses import dataclass, fields
from typing import Optional, Union

from .node import Node


@dataclass(frozen=True)
class Resistor:
    resistance: float


@dataclass(frozen=True)
class Capacitor:
    capacitance: float


@dataclass(frozen=True)
class Inductor:
    inductance: float


@dataclass(frozen=True)
class VoltageSource:
    voltage: float


@dataclass(frozen=True)
class CurrentSource:
    current: float


Model = Union[Resistor, Capacitor, Inductor, VoltageSource, CurrentSource]

# Every model variant, in SPICE letter order of the device set
MODEL_TYPES = (Resistor, Capacitor, Inductor, VoltageSource, CurrentSource)

# Model variant -> display name
MODEL_DISPLAY_NAMES = {
    Resistor: "Resistor",
    Capacitor: "Capacitor",
    Inductor: "Inductor",
    VoltageSource: "Voltage Source",
    CurrentSource: "Current Source",
}

# Physical unit of each model's parameter
MODEL_UNITS = {
    Resistor: "Ohm",
    Capacitor: "F",
    Inductor: "H",
    VoltageSource: "V",
    CurrentSource: "A",
}


def model_value(model: Model) -> float:
    """Return the single parameter carried by a model variant."""
    if type(model) not in MODEL_DISPLAY_NAMES:
        raise TypeError(f"Not a device model: {model!r}")
    return getattr(model, fields(model)[0].name)


@dataclass
class Component:
    """
    Pure Python data class representing one device instance.

    Inline-valued devices (R, C, L, V, I) carry their Model; subcircuit
    instances (X) carry the subcircuit name as a model reference instead.
    """

    name: str
    terminals: tuple[Node, ...]
    model: Optional[Model] = None
    subcircuit: Optional[str] = None
    # Source line of the card that declared this component
    line: int = 0

    @property
    def component_type(self) -> str:
        if self.model is not None:
            return MODEL_DISPLAY_NAMES[type(self.model)]
        return "Subcircuit"

    @property
    def value(self) -> Optional[float]:
        if self.model is None:
            return None
        return model_value(self.model)

    def get_terminal_count(self) -> int:
        return len(self.terminals)

    def connects_node(self, node: Node) -> bool:
        return node in self.terminals

    def to_dict(self) -> dict:
        """Serialize component to dictionary."""
        data = {
            "name": self.name,
            "type": self.component_type,
            "nodes": [node.label for node in self.terminals],
            "line": self.line,
        }
        if self.model is not None:
            data["value"] = self.value
            data["unit"] = MODEL_UNITS[type(self.model)]
        if self.subcircuit is not None:
            data["subcircuit"] = self.subcircuit
        return data

    def __repr__(self) -> str:
        nodes = " ".join(node.label for node in self.terminals)
        if self.model is not None:
            return f"Component({self.name} {nodes} {self.value})"
        return f"Component({self.name} {nodes} {self.subcircuit})"
