#!/usr/bin/env python3
"""byvalue_analysis/main.py — CLI entry-point.

Usage examples
--------------
    # Check a catalog, confirming the types named in a config file
    python -m byvalue_analysis check catalog.json --config types.json

    # Ad-hoc requests and blocklist entries
    python -m byvalue_analysis check catalog.json -r geo::Point -b LegacyHandle

    # Machine-readable verdicts
    python -m byvalue_analysis check catalog.json -r geo::Point --format json

    # Show the built-in known-type table
    python -m byvalue_analysis known-types

Exit codes
----------
    0   Every requested type was confirmed safe by value.
    1   A requested type could not be confirmed (the cause is printed).
    2   Infrastructure failure (missing file, malformed catalog or config).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from byvalue_analysis import __version__
from byvalue_analysis.checker import ByValueChecker
from byvalue_analysis.config import TypeConfig
from byvalue_analysis.declarations import load_catalog_file
from byvalue_analysis.errors import InputError, UnsafeByValueError
from byvalue_analysis.known_types import KNOWN_TYPES
from byvalue_analysis.safety_store import Verdict
from byvalue_analysis.type_names import TypeIdentifier

_log = logging.getLogger("byvalue_analysis")
_HANDLER_NAME = "byvalue-check"

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``byvalue_analysis`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.set_name(_HANDLER_NAME)
    root = logging.getLogger("byvalue_analysis")
    # Repeated main() calls replace the handler instead of stacking them.
    for old in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _verdict_to_dict(type_id: TypeIdentifier, verdict: Optional[Verdict]) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"type": str(type_id)}
    if verdict is None:
        entry["verdict"] = "undeclared"
        return entry
    entry["verdict"] = verdict.kind.name.lower()
    if verdict.reason is not None:
        entry["category"] = verdict.reason.category.name.lower()
        entry["reason"] = verdict.reason.message
    if verdict.target is not None:
        entry["target"] = str(verdict.target)
    return entry


def _emit_verdicts(
    rows: List[Dict[str, Any]],
    error: Optional[UnsafeByValueError],
    fmt: str,
    stream: TextIO,
) -> None:
    if fmt == "json":
        payload: Dict[str, Any] = {"types": rows, "error": None}
        if error is not None:
            payload["error"] = {"code": str(error.code), "message": error.message}
        stream.write(json.dumps(payload, indent=2) + "\n")
        return

    for row in rows:
        line = f"{row['type']}: {row['verdict'].replace('_', ' ')}"
        if "target" in row:
            line += f" {row['target']}"
        if "reason" in row:
            line += f" ({row['reason']})"
        stream.write(line + "\n")
    if error is not None:
        stream.write(f"\nerror: [{error.code}] {error.message}\n")
    confirmed = sum(1 for r in rows if r["verdict"] == "confirmed")
    stream.write(f"\n--- {len(rows)} type(s), {confirmed} confirmed by value ---\n")


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Ingest a catalog, confirm the requested types, report verdicts."""
    catalog_path = _resolve_path(args.catalog, "catalog")
    try:
        declarations = load_catalog_file(catalog_path)
        if args.config:
            config = TypeConfig.from_json_file(_resolve_path(args.config, "config"))
        else:
            config = TypeConfig()
        config.blocklist.extend(args.blocklist or [])
        config.by_value.extend(args.request or [])
        requests = config.by_value_requests()
        checker = ByValueChecker()
        checker.ingest_catalog(declarations, config)
    except (InputError, OSError) as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    error: Optional[UnsafeByValueError] = None
    try:
        checker.confirm(requests)
    except UnsafeByValueError as exc:
        _log.error("Unable to confirm by-value request: %s", exc)
        error = exc

    shown: List[TypeIdentifier] = []
    for type_id in [d.name for d in declarations] + requests:
        if type_id not in shown:
            shown.append(type_id)
    rows = [_verdict_to_dict(t, checker.verdict_of(t)) for t in sorted(shown)]

    out = _open_output(args.output)
    try:
        _emit_verdicts(rows, error, args.format, out)
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_ERROR if error is not None else EXIT_OK


def cmd_known_types(args: argparse.Namespace) -> int:
    """Print the built-in known-type table."""
    out = _open_output(args.output)
    try:
        if args.format == "json":
            rows = [
                {
                    "type": str(kt.identifier),
                    "by_value_safe": kt.by_value_safe,
                    "description": kt.description,
                }
                for kt in KNOWN_TYPES
            ]
            out.write(json.dumps(rows, indent=2) + "\n")
        else:
            for kt in KNOWN_TYPES:
                safety = "safe" if kt.by_value_safe else "unsafe"
                note = f"  # {kt.description}" if kt.description else ""
                out.write(f"{kt.identifier}: {safety}{note}\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _add_output_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-f", "--format",
        choices=["summary", "json"],
        default="summary",
        help="Output format (default: summary).",
    )
    p.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="byvalue-check",
        description="Decide which declared foreign types are safe by value.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v INFO, -vv DEBUG).",
    )
    subparsers = parser.add_subparsers(title="commands", metavar="COMMAND")

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Check a declaration catalog.",
        description=(
            "Ingest a JSON declaration catalog, confirm the requested types "
            "as safe by value and print each type's verdict."
        ),
    )
    p_check.add_argument(
        "catalog",
        metavar="CATALOG",
        help="JSON declaration catalog.",
    )
    p_check.add_argument(
        "-c", "--config",
        metavar="FILE",
        default=None,
        help="JSON config with 'blocklist' and 'by_value' lists.",
    )
    p_check.add_argument(
        "-r", "--request",
        action="append",
        metavar="TYPE",
        help="Type that must be confirmed safe by value (repeatable).",
    )
    p_check.add_argument(
        "-b", "--blocklist",
        action="append",
        metavar="TYPE",
        help="Type forced unsafe by value (repeatable).",
    )
    _add_output_args(p_check)
    p_check.set_defaults(func=cmd_check)

    # --- known-types -------------------------------------------------------
    p_known = subparsers.add_parser(
        "known-types",
        help="List the built-in known types.",
    )
    _add_output_args(p_known)
    p_known.set_defaults(func=cmd_known_types)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
