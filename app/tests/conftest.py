"""
Shared test fixtures for the netlist front-end test suite.

Fixtures are plain netlist strings; tests run them through the real
tokenizer and parser.
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, netlist, cli)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from netlist.parser import parse_netlist


@pytest.fixture
def parse_clean():
    """Parse text and assert nothing was recorded; returns the circuit."""

    def _parse(text, name="circuit"):
        result = parse_netlist(text, name=name)
        assert result.errors.format_errors() == []
        return result.circuit

    return _parse


@pytest.fixture
def divider_netlist():
    """
    V1+ -- R1 -- out -- R2 -- GND
    V1- connected to GND
    """
    return "* voltage divider\nV1 in 0 DC 10\nR1 in out 1k\nR2 out 0 2k\n.op\n.end\n"


@pytest.fixture
def rc_netlist():
    return "* RC low-pass\nVin 1 0 5\nR1 1 2 1k\nC1 2 0 1u\n.tran 10u 5m\n.plot tran V(2) I(R1)\n.end\n"


@pytest.fixture
def filter_netlist():
    """Two instances of one subcircuit, defined after its first use."""
    return (
        "* RC filter stage\n"
        "V1 in 0 1\n"
        "X1 in mid FILTER\n"
        "X2 mid out FILTER\n"
        ".subckt FILTER a b\n"
        "R1 a b 1k\n"
        "C1 b 0 100n\n"
        ".ends FILTER\n"
        ".ac dec 10 1 1meg\n"
        ".end\n"
    )
