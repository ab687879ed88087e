"""
Command-line interface for the SPICE netlist front end.

Check, inspect and convert netlists without writing any Python.

Usage::

    python -m cli check amp.cir
    python -m cli export amp.cir --format json --output amp.json
    python -m cli export amp.cir --format cir
    python -m cli tokens amp.cir
    python -m cli batch netlists/ --fail-fast
    python -m cli -v check amp.cir
"""

import argparse
import glob
import json
import logging
import sys
from pathlib import Path

from netlist.errors import ErrorKind, NetlistError
from netlist.parser import ParseResult, parse_netlist
from netlist.tokenizer import tokenize
from netlist.writer import NetlistWriter

__version__ = "0.1.0"

NETLIST_SUFFIXES = (".cir", ".sp", ".spice", ".net")


def try_load_netlist(filepath: str) -> tuple[str | None, NetlistError | None]:
    """Read netlist text without exiting.

    Args:
        filepath: Path to the netlist, or "-" for stdin.

    Returns:
        (text, None) on success, or (None, error) where error is an IOError record.
    """
    if filepath == "-":
        return sys.stdin.read(), None

    path = Path(filepath)
    if not path.is_file():
        return None, NetlistError(ErrorKind.IO, f"file not found: {filepath}", 0, 0)

    try:
        return path.read_text(), None
    except (OSError, UnicodeDecodeError) as e:
        return None, NetlistError(ErrorKind.IO, f"cannot read {filepath}: {e}", 0, 0)


def load_and_parse(filepath: str) -> tuple[ParseResult | None, NetlistError | None]:
    text, error = try_load_netlist(filepath)
    if text is None:
        return None, error
    name = "stdin" if filepath == "-" else Path(filepath).stem
    return parse_netlist(text, name=name), None


def _print_errors(errors) -> None:
    for error in errors:
        print(error.format(), file=sys.stderr)


def cmd_check(args: argparse.Namespace) -> int:
    """Parse a netlist and report every error."""
    result, error = load_and_parse(args.netlist)
    if result is None:
        _print_errors([error])
        return 1

    _print_errors(result.errors)
    circuit = result.circuit
    print(
        f"{args.netlist}: {len(circuit.components)} components, {len(circuit.nodes)} nodes, "
        f"{len(circuit.subcircuits)} subcircuits, {len(result.errors)} errors"
    )
    return 0 if result.ok else 1


def cmd_export(args: argparse.Namespace) -> int:
    """Export the parsed circuit in the specified format."""
    result, error = load_and_parse(args.netlist)
    if result is None:
        _print_errors([error])
        return 1
    _print_errors(result.errors)

    fmt = args.format
    if fmt == "cir":
        output_text = NetlistWriter(result.circuit).generate()
    else:
        data = result.circuit.to_dict()
        data["errors"] = [e.to_dict() for e in result.errors]
        output_text = json.dumps(data, indent=2)

    if args.output:
        Path(args.output).write_text(output_text)
        print(f"{fmt.upper()} written to {args.output}", file=sys.stderr)
    else:
        print(output_text)
    return 0 if result.ok else 1


def cmd_tokens(args: argparse.Namespace) -> int:
    """Print the cards and tokens of a netlist."""
    text, error = try_load_netlist(args.netlist)
    if text is None:
        _print_errors([error])
        return 1

    cards, errors = tokenize(text)
    for index, card in enumerate(cards, start=1):
        print(f"card {index} (line {card.line})")
        for token in card:
            print(f"  {token.kind.name:<12} {token.lexeme!r:<16} {token.line}:{token.column}")
    _print_errors(errors)
    return 1 if errors.has_errors() else 0


def _collect_files(pattern: str) -> list[Path] | None:
    path = Path(pattern)
    if path.is_dir():
        return sorted(p for p in path.iterdir() if p.suffix.lower() in NETLIST_SUFFIXES)
    if "*" in pattern or "?" in pattern:
        return sorted(Path(p) for p in glob.glob(pattern))
    return None


def cmd_batch(args: argparse.Namespace) -> int:
    """Check multiple netlist files."""
    pattern = args.path
    files = _collect_files(pattern)
    if files is None:
        print(f"Error: {pattern} is not a directory or glob pattern", file=sys.stderr)
        return 1

    if not files:
        print(f"No netlist files found matching: {pattern}", file=sys.stderr)
        return 1

    results_summary = []
    any_failed = False

    for filepath in files:
        result, error = load_and_parse(str(filepath))

        if result is None:
            results_summary.append({"file": filepath.name, "status": "LOAD_ERROR", "error": error.message})
            any_failed = True
            if args.fail_fast:
                break
            continue

        if not result.ok:
            first = result.errors.errors[0]
            results_summary.append(
                {"file": filepath.name, "status": "FAIL", "error": f"{len(result.errors)} errors, first: {first}"}
            )
            any_failed = True
            if args.fail_fast:
                break
            continue

        results_summary.append(
            {
                "file": filepath.name,
                "status": "OK",
                "details": f"{len(result.circuit.components)} components",
            }
        )

    # Print summary table
    print(f"\n{'File':<40} {'Status':<12} {'Details'}")
    print("-" * 70)
    for entry in results_summary:
        status = entry["status"]
        details = entry.get("details", entry.get("error", ""))
        print(f"{entry['file']:<40} {status:<12} {details}")

    total = len(results_summary)
    passed = sum(1 for e in results_summary if e["status"] == "OK")
    failed = total - passed
    print(f"\n{passed}/{total} succeeded, {failed} failed")

    return 1 if any_failed else 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="spice-netlist",
        description="SPICE netlist front end: check, inspect and export netlists from the command line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # check
    check_parser = subparsers.add_parser("check", help="Parse a netlist and report errors")
    check_parser.add_argument("netlist", help="Path to netlist file ('-' for stdin)")

    # export
    exp_parser = subparsers.add_parser("export", help="Export the parsed circuit in specified format")
    exp_parser.add_argument("netlist", help="Path to netlist file ('-' for stdin)")
    exp_parser.add_argument(
        "--format", "-f", choices=["cir", "json"], default="json", help="Export format (default: json)"
    )
    exp_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # tokens
    tok_parser = subparsers.add_parser("tokens", help="Print the cards and tokens of a netlist")
    tok_parser.add_argument("netlist", help="Path to netlist file ('-' for stdin)")

    # batch
    batch_parser = subparsers.add_parser("batch", help="Check multiple netlist files")
    batch_parser.add_argument("path", help="Directory or glob pattern matching netlist files")
    batch_parser.add_argument("--fail-fast", action="store_true", help="Stop on first failing file")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    handlers = {
        "check": cmd_check,
        "export": cmd_export,
        "tokens": cmd_tokens,
        "batch": cmd_batch,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
