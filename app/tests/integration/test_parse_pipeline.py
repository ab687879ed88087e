"""
End-to-end tests: text -> tokens -> cards -> Circuit -> writer/solver hand-off.
"""

import json

import numpy as np
import pytest
from models.circuit import SimulationType
from models.node import NodeKind
from netlist import ErrorKind, parse_netlist, write_netlist

AMPLIFIER = """\
* two-stage RC network with a shared buffer subcircuit
Vcc vdd 0 DC 12
Vin in 0 0.5
Rin in a 10k
X1 a b BUFFER
Rload b 0
+ 4.7k
Cload b gnd 22p ; output cap
X2 b out BUFFER

.subckt BUFFER inp outp
Rser inp mid 100
Csh mid 0 1n
Rout mid outp 50
.plot V(mid)
.ends BUFFER

.tran 1n 10u
.plot tran V(out) V(a,b) I(Rload)
.end
this line is never read @@@
"""


class TestCleanPipeline:
    @pytest.fixture
    def result(self):
        return parse_netlist(AMPLIFIER, name="amplifier")

    def test_no_errors(self, result):
        assert result.errors.format_errors() == []

    def test_cards(self, result):
        # 7 top-level devices (Rload spans two lines), 4 body cards plus .subckt/.ends,
        # .tran, .plot, .end and EOF
        assert len(result.cards) == 7 + 6 + 4

    def test_top_level(self, result):
        circuit = result.circuit
        assert list(circuit.components) == ["Vcc", "Vin", "Rin", "X1", "Rload", "Cload", "X2"]
        assert circuit.components["Rload"].value == pytest.approx(4700.0)
        assert circuit.components["Cload"].value == pytest.approx(22e-12)
        assert circuit.nodes["vdd"].kind is NodeKind.VDD
        assert circuit.components["Cload"].terminals[1].is_ground

    def test_subcircuit_body(self, result):
        buffer = result.circuit.subcircuits["BUFFER"]
        assert buffer.ports == ["inp", "outp"]
        assert list(buffer.components) == ["Rser", "Csh", "Rout"]
        assert set(buffer.nodes) == {"inp", "outp", "mid"}
        assert "mid" not in result.circuit.nodes

    def test_analysis_and_probes(self, result):
        circuit = result.circuit
        assert circuit.sim_params.sim_type is SimulationType.TRAN
        assert circuit.sim_params.stop_time == pytest.approx(1e-5)
        assert [p.label for p in circuit.probes] == ["V(mid)", "V(out)", "V(a,b)", "I(Rload)"]

    def test_incidence_matrix(self, result):
        matrix, labels, names = result.circuit.incidence_matrix()
        assert labels[0] == "0"
        assert "X1" not in names
        assert names == ["Vcc", "Vin", "Rin", "Rload", "Cload"]
        assert matrix.shape == (len(labels), len(names))
        assert not matrix.sum(axis=0).any()
        # Rin runs from "in" to "a"
        column = matrix[:, names.index("Rin")]
        assert column[labels.index("in")] == 1
        assert column[labels.index("a")] == -1
        assert np.count_nonzero(column) == 2

    def test_json_ready(self, result):
        data = json.loads(json.dumps(result.circuit.to_dict()))
        assert data["name"] == "amplifier"
        assert data["analysis"]["sim_type"] == "tran"
        assert data["subcircuits"][0]["name"] == "BUFFER"

    def test_writer_round_trip(self, result):
        again = parse_netlist(write_netlist(result.circuit))
        assert again.errors.format_errors() == []
        assert list(again.circuit.components) == list(result.circuit.components)
        assert again.circuit.subcircuits["BUFFER"].ports == ["inp", "outp"]


class TestErrorAccumulation:
    SOURCE = """\
R1 a 0 1k
R2 a $ 0 2k
.foo
Q1 c b e
R1 b 0 3
R3 a b c 1
X1 a b MISSING
.subckt OPEN p
C1 p 0 1u
.tran 1u 1m
.tran 2u 1m
"""

    def test_every_problem_reported_in_order(self):
        result = parse_netlist(self.SOURCE)
        assert [(e.kind, e.line) for e in result.errors] == [
            (ErrorKind.LEXICAL, 2),
            (ErrorKind.LEXICAL, 3),
            (ErrorKind.SYNTAX, 4),
            (ErrorKind.SEMANTIC, 5),
            (ErrorKind.SYNTAX, 6),
            (ErrorKind.SEMANTIC, 11),
            (ErrorKind.SYNTAX, 8),
            (ErrorKind.SEMANTIC, 7),
        ]

    def test_best_effort_circuit(self):
        circuit = parse_netlist(self.SOURCE).circuit
        assert list(circuit.components) == ["R1", "R2", "X1"]
        assert circuit.components["R1"].value == 1000.0
        assert list(circuit.subcircuits["OPEN"].components) == ["C1"]
        assert circuit.sim_params.time_step == pytest.approx(1e-6)

    def test_formatted_output(self):
        lines = parse_netlist(self.SOURCE).errors.format_errors()
        assert lines[0] == "[Lexical Error] Line: 2, Column: 6: Unexpected character: $"
        assert lines[1] == "[Lexical Error] Line: 3, Column: 1: Unexpected command: .foo"
        assert lines[-1] == "[Semantic Error] Line: 7, Column: 8: Undefined symbol: MISSING (expected subcircuit)"
