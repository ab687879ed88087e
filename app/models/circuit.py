"""
Circuit - Central data store for a parsed netlist.

This module contains no parsing logic. It holds the nodes, components,
subcircuit bodies, simulation parameters and output probes that the parser
builds, and offers the read-only views the solver and display layers use.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

import numpy as np

from .component import Component, Model
from .node import Node, NodeKind


class SimulationType(Enum):
    OP = "op"
    DC = "dc"
    AC = "ac"
    TRAN = "tran"


class ParameterConflict(ValueError):
    """Raised when a simulation parameter is set twice with different values."""

    def __init__(self, name, current, requested):
        self.name = name
        self.current = current
        self.requested = requested
        super().__init__(f"Conflicting {name}: already set to {_display(current)}, got {_display(requested)}")


def _display(value):
    if isinstance(value, Enum):
        return value.value
    return value


_KIND_ORDER = {NodeKind.GROUND: 0, NodeKind.VDD: 1, NodeKind.NET: 2}


def _row_key(node: Node):
    """Incidence row identity: one row per reserved kind, one per net id."""
    if node.kind is NodeKind.NET:
        return node.net_id
    return node.kind


@dataclass
class SimulationParams:
    """
    Directive-derived simulation settings.

    Every field starts unset and may be assigned once. Assigning the same
    value again is accepted; assigning a different one raises
    ParameterConflict and leaves the first value in place.
    """

    sim_type: Optional[SimulationType] = None

    # .tran
    time_step: Optional[float] = None
    stop_time: Optional[float] = None
    start_time: Optional[float] = None

    # .ac
    sweep_type: Optional[str] = None
    points: Optional[float] = None
    start_freq: Optional[float] = None
    stop_freq: Optional[float] = None

    # .dc
    dc_source: Optional[str] = None
    dc_start: Optional[float] = None
    dc_stop: Optional[float] = None
    dc_step: Optional[float] = None

    def set(self, name: str, value) -> None:
        self.apply({name: value})

    def apply(self, values: dict) -> None:
        """
        Set several fields as one unit: every value is checked before any is
        written, so a conflict leaves all fields untouched.
        """
        for name, value in values.items():
            current = getattr(self, name)
            if current is not None and current != value:
                raise ParameterConflict(name, current, value)
        for name, value in values.items():
            setattr(self, name, value)

    def to_dict(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                data[f.name] = _display(value)
        return data


@dataclass
class Probe:
    """An output request such as V(out), V(a,b) or I(R1) from .plot/.wave."""

    kind: str
    refs: tuple[str, ...]
    analysis: Optional[str] = None
    line: int = 0
    # Enclosing .subckt when the request sits inside a body
    subcircuit: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.kind}({','.join(self.refs)})"

    def to_dict(self) -> dict:
        data = {"kind": self.kind, "refs": list(self.refs), "line": self.line}
        if self.analysis:
            data["analysis"] = self.analysis
        if self.subcircuit:
            data["subcircuit"] = self.subcircuit
        return data


@dataclass
class Subcircuit:
    """
    A .subckt body: its port list and the symbols of its local scope.

    Bodies are recorded, never expanded into the enclosing circuit.
    """

    name: str
    ports: list[str] = field(default_factory=list)
    nodes: dict[str, Node] = field(default_factory=dict)
    components: dict[str, Component] = field(default_factory=dict)
    line: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ports": list(self.ports),
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "components": [c.to_dict() for c in self.components.values()],
            "line": self.line,
        }


@dataclass
class Circuit:
    """
    Central data store holding a parsed netlist.

    Top-level nodes and components live here; subcircuit-local ones live on
    their Subcircuit record.
    """

    name: str = "circuit"
    nodes: dict[str, Node] = field(default_factory=dict)
    components: dict[str, Component] = field(default_factory=dict)
    subcircuits: dict[str, Subcircuit] = field(default_factory=dict)
    sim_params: SimulationParams = field(default_factory=SimulationParams)
    probes: list[Probe] = field(default_factory=list)

    # --- Node and component operations ---

    def add_node(self, node: Node) -> None:
        self.nodes[node.name] = node

    def add_component(self, component: Component) -> None:
        self.components[component.name] = component

    @property
    def models(self) -> dict[str, Model]:
        """Inline device models of the top-level components, keyed by instance."""
        return {name: c.model for name, c in self.components.items() if c.model is not None}

    @property
    def ground(self) -> Optional[Node]:
        for node in self.nodes.values():
            if node.is_ground:
                return node
        return None

    def nets(self) -> list[Node]:
        """Numbered nets in id order."""
        return sorted(
            (n for n in self.nodes.values() if n.kind is NodeKind.NET),
            key=lambda n: n.net_id,
        )

    def components_at(self, node: Node) -> list[Component]:
        return [c for c in self.components.values() if c.connects_node(node)]

    # --- Solver hand-off ---

    def incidence_matrix(self) -> tuple[np.ndarray, list[str], list[str]]:
        """
        Build the node/branch incidence matrix of the top-level devices.

        Rows are nodes with ground first (when present), then Vdd, then nets
        by id. Columns are the two-terminal components in card order; a
        branch enters +1 at its first terminal and -1 at its second.
        Subcircuit instances are not expanded and get no column.

        Returns:
            (matrix, node_labels, component_names)
        """
        ordered = sorted(self.nodes.values(), key=lambda n: (_KIND_ORDER[n.kind], n.net_id or 0))
        # Ground aliases ("0", "gnd") share one row
        rows: dict[object, int] = {}
        labels: list[str] = []
        for node in ordered:
            if _row_key(node) not in rows:
                rows[_row_key(node)] = len(labels)
                labels.append(node.label)

        branches = [c for c in self.components.values() if c.model is not None and len(c.terminals) == 2]
        matrix = np.zeros((len(labels), len(branches)), dtype=int)
        for j, comp in enumerate(branches):
            pos, neg = comp.terminals
            matrix[rows[_row_key(pos)], j] += 1
            matrix[rows[_row_key(neg)], j] -= 1
        return matrix, labels, [c.name for c in branches]

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize circuit to a JSON-ready dictionary."""
        data = {
            "name": self.name,
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "components": [c.to_dict() for c in self.components.values()],
            "analysis": self.sim_params.to_dict(),
        }
        if self.subcircuits:
            data["subcircuits"] = [s.to_dict() for s in self.subcircuits.values()]
        if self.probes:
            data["probes"] = [p.to_dict() for p in self.probes]
        return data
