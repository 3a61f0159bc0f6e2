"""cli.py: Pieces shared by the scripts/ entry points.

Both scripts take ``--database-url`` and map their outcome onto the same
exit codes: 0 when everything is fine, 1 otherwise.

Called by: scripts/migrate.py, scripts/preflight.py
"""

from __future__ import annotations

import argparse
import sys

from personaforge.core.errors import MigrationError

EXIT_OK = 0
EXIT_FAILED = 1


def build_parser(description: str) -> argparse.ArgumentParser:
    """ArgumentParser with the ``--database-url`` override every script accepts."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this run.",
    )
    return parser


def exit_code(ok: bool) -> int:
    return EXIT_OK if ok else EXIT_FAILED


def report_error(exc: MigrationError) -> int:
    """Print ``error: <kind>: <message>`` to stderr and return the failure code."""
    print(f"error: {exc.kind}: {exc}", file=sys.stderr)
    return EXIT_FAILED
