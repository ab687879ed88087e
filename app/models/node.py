"""
Node - Pure Python data model for electrical nodes.

A node is a named electrical connection point. Ground and Vdd are reserved;
every other name becomes a numbered net. Net ids are handed out by the
parser for one parse only, so there is no module-level counter here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NodeKind(Enum):
    """The three node variants a netlist can refer to."""

    GROUND = "ground"
    VDD = "vdd"
    NET = "net"


# Reserved node names (compared lower-cased) -> node kind
RESERVED_NODE_NAMES = {
    "0": NodeKind.GROUND,
    "gnd": NodeKind.GROUND,
    "vdd": NodeKind.VDD,
}


@dataclass(frozen=True)
class Node:
    """
    Pure Python data class representing an electrical node.

    Identity is by name at parse time; after registration the node carries
    its resolved variant (ground, vdd or numbered net).
    """

    kind: NodeKind
    name: str
    # Sequential id for numbered nets, None for the reserved nodes
    net_id: Optional[int] = None

    @classmethod
    def ground(cls, name: str = "0") -> "Node":
        return cls(NodeKind.GROUND, name)

    @classmethod
    def vdd(cls, name: str = "vdd") -> "Node":
        return cls(NodeKind.VDD, name)

    @classmethod
    def net(cls, net_id: int, name: str) -> "Node":
        return cls(NodeKind.NET, name, net_id)

    @property
    def is_ground(self) -> bool:
        return self.kind is NodeKind.GROUND

    @property
    def label(self) -> str:
        """
        Get the SPICE label for this node.

        Returns:
            "0" for ground, otherwise the name the netlist used.
        """
        if self.is_ground:
            return "0"
        return self.name

    def to_dict(self) -> dict:
        data = {"name": self.name, "kind": self.kind.value}
        if self.net_id is not None:
            data["id"] = self.net_id
        return data

    def __repr__(self) -> str:
        if self.kind is NodeKind.NET:
            return f"Node({self.name}, net={self.net_id})"
        return f"Node({self.kind.value})"


def reserved_node(name: str) -> Optional[Node]:
    """Return the reserved Ground/Vdd node for a name, or None."""
    kind = RESERVED_NODE_NAMES.get(name.lower())
    if kind is NodeKind.GROUND:
        return Node.ground(name)
    if kind is NodeKind.VDD:
        return Node.vdd(name)
    return None
