"""Readiness check for the persona store.

Usage (from backend/):
  python scripts/preflight.py             # one line per check
  python scripts/preflight.py --json      # machine-readable report

Exit code is 0 only when settings load, the database is reachable and
the schema is at head.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Sequence

from personaforge.core.cli import build_parser, exit_code
from personaforge.core.logging import configure_logging
from personaforge.core.preflight import PreflightReport, run_preflight


def _build_parser() -> argparse.ArgumentParser:
    parser = build_parser("Check that the persona store is ready to serve the bot.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    return parser


def _render(report: PreflightReport) -> str:
    lines = []
    for check in report.checks:
        mark = "OK" if check.ok else "FAIL"
        lines.append(f"{mark:4s} {check.name:10s} {check.detail}")
    lines.append(f"preflight {'passed' if report.ok else 'failed'} at {report.timestamp_utc}")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()

    report = asyncio.run(run_preflight(database_url=args.database_url))
    print(json.dumps(report.as_dict(), indent=2) if args.json else _render(report))
    return exit_code(report.ok)


if __name__ == "__main__":
    raise SystemExit(main())
