"""CLI for applying and inspecting persona store migrations.

Usage (from backend/):
  python scripts/migrate.py up            # apply everything pending
  python scripts/migrate.py down          # roll back one revision
  python scripts/migrate.py status        # APPLIED / PENDING per revision

Exit code is 1 on any migration error; the schema is left unchanged.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from personaforge.core import migrations
from personaforge.core.cli import EXIT_OK, build_parser, report_error
from personaforge.core.errors import MigrationError
from personaforge.core.logging import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = build_parser("Apply, roll back or inspect persona store migrations.")
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("up", help="Apply pending migrations.")
    up.add_argument("revision", nargs="?", default="head")

    down = sub.add_parser("down", help="Roll back migrations.")
    down.add_argument("revision", nargs="?", default="-1")

    sub.add_parser("status", help="Show applied/pending revisions.")
    return parser


def _render_status(states: list[migrations.MigrationState]) -> str:
    lines = []
    for state in states:
        mark = "APPLIED" if state.applied else "PENDING"
        lines.append(f"{state.revision} {state.description:50s} {mark}")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()

    try:
        if args.command == "up":
            migrations.upgrade(args.revision, database_url=args.database_url)
        elif args.command == "down":
            migrations.downgrade(args.revision, database_url=args.database_url)
        else:
            print(_render_status(migrations.migration_status(args.database_url)))
    except MigrationError as exc:
        return report_error(exc)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
