from __future__ import annotations

import argparse
import json
import subprocess
import sys
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PWA Directory (no subcommand runs the web server)")
    subparsers = parser.add_subparsers(dest="command", required=False)

    web_parser = subparsers.add_parser("web", help="Run the directory web server")
    web_parser.add_argument("--host", default=None)
    web_parser.add_argument("--port", type=int, default=None)
    web_parser.add_argument("--no-open", action="store_true")

    import_parser = subparsers.add_parser("import", help="Import catalog entries from a JSON list")
    import_parser.add_argument("path", help="JSON file holding a list of entry records")

    test_parser = subparsers.add_parser("test", help="Run all tests with pytest")
    test_parser.add_argument(
        "pytest_args",
        nargs=argparse.REMAINDER,
        help="Optional extra pytest args; use `--` before args (e.g. pwadir test -- -k pagination)",
    )

    return parser


def run_tests(args: argparse.Namespace) -> int:
    cmd = [sys.executable, "-m", "pytest"]
    if args.pytest_args:
        cmd.extend(arg for arg in args.pytest_args if arg != "--")
    print("Running:", " ".join(cmd))
    return subprocess.call(cmd)


def run_import(args: argparse.Namespace) -> int:
    from pwadir.core.config import get_settings
    from pwadir.core.models import Entry
    from pwadir.runtime.catalog import JsonCatalog

    path = Path(args.path)
    try:
        records = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"Failed to read {path}: {exc}", file=sys.stderr)
        return 1
    if not isinstance(records, list):
        print(f"Expected a JSON list of entries in {path}", file=sys.stderr)
        return 1

    try:
        entries = [Entry.model_validate(record) for record in records]
    except ValueError as exc:
        print(f"Invalid entry record: {exc}", file=sys.stderr)
        return 1

    catalog = JsonCatalog(get_settings())
    catalog.seed(entries)
    print(f"Imported {len(entries)} entries into {catalog.path}")
    return 0


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command in {None, "web"}:
        from pwadir.core.config import get_settings
        from pwadir.web_server import run_web_server

        settings = get_settings()
        host = getattr(args, "host", None) or settings.web_host
        port = getattr(args, "port", None) or settings.web_port
        run_web_server(host=host, port=port, no_open=bool(getattr(args, "no_open", False)))
        return

    if args.command == "import":
        raise SystemExit(run_import(args))

    if args.command == "test":
        raise SystemExit(run_tests(args))

    parser.print_help()


if __name__ == "__main__":
    main()
