"""
netlist/writer.py

Writes a Circuit back out as SPICE netlist text.
"""

from models.circuit import SimulationType

from .grammar import MODEL_LETTERS
from .units import format_value


class NetlistWriter:
    """Generates a SPICE netlist from a parsed Circuit"""

    def __init__(self, circuit):
        self.circuit = circuit

    def generate(self):
        """Generate complete SPICE netlist"""
        lines = [f"* {self.circuit.name}", "* Generated netlist", ""]

        for subckt in self.circuit.subcircuits.values():
            lines.append(f".subckt {subckt.name} {' '.join(subckt.ports)}".rstrip())
            lines.extend(self._component_line(comp) for comp in subckt.components.values())
            lines.extend(self._probe_lines(subckt.name))
            lines.append(f".ends {subckt.name}")
            lines.append("")

        lines.extend(self._component_line(comp) for comp in self.circuit.components.values())

        analysis = self._analysis_command()
        if analysis:
            lines.append("")
            lines.append("* Analysis Command")
            lines.append(analysis)

        probes = self._probe_lines(None)
        if probes:
            lines.append("")
            lines.extend(probes)

        lines.append("")
        lines.append(".end")
        return "\n".join(lines) + "\n"

    def _probe_lines(self, subcircuit):
        lines = []
        for probe in self.circuit.probes:
            if probe.subcircuit == subcircuit:
                prefix = f".plot {probe.analysis}" if probe.analysis else ".plot"
                lines.append(f"{prefix} {probe.label}")
        return lines

    def _component_line(self, comp):
        parts = [comp.name] + [node.label for node in comp.terminals]
        if comp.model is None:
            parts.append(comp.subcircuit)
        elif MODEL_LETTERS[type(comp.model)] in ("V", "I"):
            parts += ["DC", format_value(comp.value)]
        else:
            parts.append(format_value(comp.value))
        return " ".join(parts)

    def _analysis_command(self):
        """Generate the analysis directive, or None when no analysis was set"""
        params = self.circuit.sim_params
        if params.sim_type is SimulationType.OP:
            return ".op"

        if params.sim_type is SimulationType.DC:
            values = " ".join(format_value(v) for v in (params.dc_start, params.dc_stop, params.dc_step))
            return f".dc {params.dc_source} {values}"

        if params.sim_type is SimulationType.AC:
            values = " ".join(format_value(v) for v in (params.points, params.start_freq, params.stop_freq))
            return f".ac {params.sweep_type} {values}"

        if params.sim_type is SimulationType.TRAN:
            command = f".tran {format_value(params.time_step)} {format_value(params.stop_time)}"
            if params.start_time is not None:
                command += f" {format_value(params.start_time)}"
            return command

        return None


def write_netlist(circuit) -> str:
    return NetlistWriter(circuit).generate()
