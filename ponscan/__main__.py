"""``ponscan <command>`` entry point.

Commands:
  scan      Discover cards and ONUs on one or more OLTs
  vendors   List supported OLT dialects

Examples:
  PONSCAN_TELNET_PASSWORD=<PW> ponscan scan --vendor zte --host 10.0.0.2 --username admin --slots 2

  ponscan scan --inventory olts.json --format json -o report.json
"""

from __future__ import annotations

import os
import platform
import sys
from importlib import import_module

from tabulate import tabulate

from ponscan import __version__, configure_logging, glogger, list_vendors

# command -> (module, entry point, summary)
COMMANDS = {
    "scan": ("ponscan.cli", "main", "Discover cards and ONUs on OLTs"),
    "vendors": ("ponscan.cli", "vendors_main", "List supported OLT vendors"),
}


def _print_usage() -> None:
    print("usage: ponscan <command> [options]\n")
    print("Available commands:")
    print(tabulate([(f"  {cmd}", summary) for cmd, (_, _, summary) in COMMANDS.items()], tablefmt="plain"))
    print("\nSee 'ponscan <command> --help' for the options of a command.")


def _print_startup_banner() -> None:
    rows = [
        ["ponscan", __version__],
        ["python", platform.python_version()],
        ["dialects", ", ".join(list_vendors())],
        ["log level", os.getenv("LOGURU_LEVEL", "DEBUG")],
    ]
    glogger.opt(raw=True).info("\n{}\n", tabulate(rows, tablefmt="rounded_outline"))


def main() -> None:
    """Dispatch ``sys.argv[1]`` to its sub-CLI with the remaining arguments."""
    configure_logging()
    _print_startup_banner()

    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help"):
        _print_usage()
        sys.exit(0 if args else 1)

    command, rest = args[0], args[1:]
    if command not in COMMANDS:
        print(f"ponscan: unknown command '{command}'\n", file=sys.stderr)
        _print_usage()
        sys.exit(1)

    module_path, entry, _ = COMMANDS[command]
    getattr(import_module(module_path), entry)(rest)


if __name__ == "__main__":
    main()
