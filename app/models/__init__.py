"""
Pure Python data models for the netlist front end.

This package contains the data classes a parse produces. It has no parsing
logic of its own.
"""

from .circuit import Circuit, ParameterConflict, Probe, SimulationParams, SimulationType, Subcircuit
from .component import (
    MODEL_TYPES,
    Capacitor,
    Component,
    CurrentSource,
    Inductor,
    Model,
    Resistor,
    VoltageSource,
    model_value,
)
from .node import RESERVED_NODE_NAMES, Node, NodeKind, reserved_node

__all__ = [
    "Circuit",
    "Subcircuit",
    "SimulationParams",
    "SimulationType",
    "ParameterConflict",
    "Probe",
    "Component",
    "Model",
    "MODEL_TYPES",
    "Resistor",
    "Capacitor",
    "Inductor",
    "VoltageSource",
    "CurrentSource",
    "model_value",
    "Node",
    "NodeKind",
    "RESERVED_NODE_NAMES",
    "reserved_node",
]
