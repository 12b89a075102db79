"""CLI entry point for OLT discovery scans, standalone-capable.

Secrets are never taken from the command line. They come from the
inventory file or from the environment:

  PONSCAN_TELNET_PASSWORD   Telnet login password
  PONSCAN_ENABLE_PASSWORD   privileged-mode password (optional)
  PONSCAN_SNMP_COMMUNITY    SNMPv2c community (required with --snmp)

Examples:
  # one ZTE C320 with two PON cards of 16 ports
  PONSCAN_TELNET_PASSWORD=... ponscan scan --vendor zte --host 10.0.0.2 \\
      --username admin --slots 2 --ports 16

  # HIOSO EPON over SNMP only
  PONSCAN_SNMP_COMMUNITY=... ponscan scan --vendor hioso --host 10.0.0.3 --no-telnet --snmp

  # every OLT in an inventory file, four at a time, JSON report
  ponscan scan --inventory olts.json --workers 4 --format json -o report.json
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError
from tabulate import tabulate

from ponscan.dialects import list_vendors
from ponscan.models.device import Device, ScanOptions, Vendor
from ponscan.models.inventory import ScanResult
from ponscan.orchestrator import DEFAULT_WORKERS, DiscoveryOrchestrator

ENV_TELNET_PASSWORD = "PONSCAN_TELNET_PASSWORD"
ENV_ENABLE_PASSWORD = "PONSCAN_ENABLE_PASSWORD"
ENV_SNMP_COMMUNITY = "PONSCAN_SNMP_COMMUNITY"


class InventoryError(ValueError):
    """Inventory file or device flags do not describe a valid device."""


def _apply_env_secrets(entry: dict[str, Any], env: dict[str, str]) -> dict[str, Any]:
    """Fill secrets missing from ``entry`` from the environment."""
    entry = dict(entry)
    for field_name, var in (
        ("telnet_password", ENV_TELNET_PASSWORD),
        ("enable_password", ENV_ENABLE_PASSWORD),
        ("snmp_community", ENV_SNMP_COMMUNITY),
    ):
        if not entry.get(field_name) and env.get(var):
            entry[field_name] = env[var]
    return entry


def vendor_name(value: str) -> str:
    """argparse type: normalize loose vendor spellings to the canonical name."""
    return Vendor.parse(value).value


def _vendor(value: Any) -> Any:
    return Vendor.parse(value) if isinstance(value, str) else value


def load_inventory(path: str | Path, env: dict[str, str] | None = None) -> list[Device]:
    """Read devices from a JSON file: a list, or an object with a ``devices`` list."""
    env = dict(os.environ) if env is None else env
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise InventoryError(f"Cannot read inventory {path}: {e}") from e

    entries = data.get("devices") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise InventoryError(f"Inventory {path} must be a list of devices or {{'devices': [...]}}")

    devices = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise InventoryError(f"Inventory {path}: entry {i} is not an object")
        entry = _apply_env_secrets(entry, env)
        entry.setdefault("name", entry.get("host", f"olt-{i}"))
        try:
            entry["vendor"] = _vendor(entry.get("vendor", ""))
            devices.append(Device.model_validate(entry))
        except (ValidationError, ValueError) as e:
            raise InventoryError(f"Inventory {path}: entry {i} ({entry.get('name')}): {e}") from e
    return devices


def device_from_args(parsed: argparse.Namespace, env: dict[str, str] | None = None) -> Device:
    """Build a single Device from ``--vendor/--host`` style flags."""
    env = dict(os.environ) if env is None else env
    entry: dict[str, Any] = {
        "name": parsed.name or parsed.host,
        "host": parsed.host,
        "telnet_port": parsed.telnet_port,
        "telnet_username": parsed.username,
        "snmp_port": parsed.snmp_port,
        "total_pon_slots": parsed.slots,
        "ports_per_slot": parsed.ports,
        "telnet_enabled": not parsed.no_telnet,
        "snmp_enabled": parsed.snmp,
    }
    entry = _apply_env_secrets(entry, env)
    try:
        entry["vendor"] = Vendor.parse(parsed.vendor)
        return Device.model_validate(entry)
    except (ValidationError, ValueError) as e:
        raise InventoryError(str(e)) from e


def options_from_args(parsed: argparse.Namespace) -> ScanOptions:
    return ScanOptions(
        connect_timeout=parsed.connect_timeout,
        command_timeout=parsed.command_timeout,
        walk_timeout=parsed.walk_timeout,
        fetch_details=not parsed.no_details,
        fetch_uncfg=not parsed.no_uncfg,
        deadline=parsed.deadline,
    )


def _fmt(value: Any) -> str:
    return "-" if value is None else str(value)


def format_table(results: list[ScanResult]) -> str:
    """Render scan results as tabulate tables, one block per device."""
    blocks: list[str] = []
    for result in results:
        header = f"== {result.device} ({result.vendor})"
        if not result.ok:
            blocks.append(f"{header}: FAILED - {result.error}")
            continue
        lines = [f"{header}: {len(result.cards)} card(s), {result.onu_count} ONU(s)"]
        if result.cards:
            lines.append(
                tabulate(
                    [[c.slot, c.card_type, _fmt(c.port_count), c.status] for c in result.cards],
                    headers=["Slot", "Type", "Ports", "Status"],
                    tablefmt="simple",
                )
            )
        if result.onus:
            rows = [
                [
                    str(o.port),
                    o.onu_id,
                    _fmt(o.serial),
                    _fmt(o.status.value if o.status else None),
                    _fmt(o.signal_rx),
                    _fmt(o.signal_tx),
                    _fmt(o.distance),
                    _fmt(o.name),
                    o.source,
                ]
                for o in result.onus
            ]
            lines.append(
                tabulate(
                    rows,
                    headers=["Port", "ONU", "Serial", "Status", "RX dBm", "TX dBm", "Dist m", "Name", "Source"],
                    tablefmt="simple",
                )
            )
        if result.diagnostics:
            lines.append("Diagnostics:")
            lines.extend(f"  {d}" for d in result.diagnostics)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_json(results: list[ScanResult]) -> str:
    return json.dumps([r.model_dump(mode="json") for r in results], indent=2)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``ponscan scan``."""
    parser = argparse.ArgumentParser(
        prog="ponscan-scan",
        description="Read-only discovery of PON cards and ONUs on OLTs via Telnet CLI and SNMP",
    )
    source = parser.add_argument_group("devices")
    source.add_argument("-i", "--inventory", help="JSON device inventory (list or {'devices': [...]})")
    source.add_argument("--vendor", choices=list_vendors(), type=vendor_name, help="OLT vendor")
    source.add_argument("--host", help="OLT IP address or hostname")
    source.add_argument("--name", help="Device name (default: host)")
    source.add_argument("--username", default="", help="Telnet username")
    source.add_argument("--telnet-port", type=int, default=23, help="Telnet port (default: 23)")
    source.add_argument("--slots", type=int, default=1, help="Number of PON slots (default: 1)")
    source.add_argument("--ports", type=int, default=16, help="PON ports per slot (default: 16)")
    source.add_argument("--snmp", action="store_true", help="Also poll ONUs via SNMPv2c")
    source.add_argument("--snmp-port", type=int, default=161, help="SNMP port (default: 161)")
    source.add_argument("--no-telnet", action="store_true", help="Skip the Telnet CLI (SNMP only)")

    tuning = parser.add_argument_group("scan")
    defaults = ScanOptions()
    tuning.add_argument("--connect-timeout", type=float, default=defaults.connect_timeout)
    tuning.add_argument("--command-timeout", type=float, default=defaults.command_timeout)
    tuning.add_argument("--walk-timeout", type=float, default=defaults.walk_timeout)
    tuning.add_argument("--deadline", type=float, help="Abort each device scan after this many seconds")
    tuning.add_argument("--no-details", action="store_true", help="Skip per-ONU detail-info commands")
    tuning.add_argument("--no-uncfg", action="store_true", help="Skip the unconfigured ONU listing")
    tuning.add_argument(
        "-w", "--workers", type=int, default=DEFAULT_WORKERS, help=f"Parallel device scans (default: {DEFAULT_WORKERS})"
    )

    parser.add_argument("-f", "--format", choices=["table", "json"], default="table", help="Output format")
    parser.add_argument("-o", "--output", help="Write the report to this file instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def main(args: list[str] | None = None) -> None:
    """Main entry point for the scan CLI."""
    parser = build_parser()
    parsed = parser.parse_args(args)

    if not parsed.verbose:
        logger.remove()
        logger.add(sys.stderr, level="INFO")
    logger.enable("ponscan")

    if not parsed.inventory and not (parsed.vendor and parsed.host):
        parser.error("either --inventory or --vendor and --host are required")

    try:
        devices = load_inventory(parsed.inventory) if parsed.inventory else [device_from_args(parsed)]
        options = options_from_args(parsed)
    except (InventoryError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    orchestrator = DiscoveryOrchestrator(options)
    try:
        results = orchestrator.scan_many_sync(devices, max_workers=parsed.workers)
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        sys.exit(130)

    output = format_json(results) if parsed.format == "json" else format_table(results)
    if parsed.output:
        with open(parsed.output, "w") as f:
            f.write(output + "\n")
        logger.info(f"Report written to {parsed.output}")
    else:
        print(output)

    if any(not r.ok for r in results):
        sys.exit(1)


def vendors_main(args: list[str] | None = None) -> None:
    """List supported vendor dialects."""
    argparse.ArgumentParser(prog="ponscan vendors", description="List supported OLT vendors").parse_args(args)
    for name in list_vendors():
        print(name)


if __name__ == "__main__":
    main()
