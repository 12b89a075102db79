"""Correlate per-field SNMP walks into OnuRecords."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

from loguru import logger

from ponscan.dialects.base import VendorDialect
from ponscan.exceptions import SnmpError
from ponscan.models.device import Device, ScanOptions
from ponscan.models.inventory import Diagnostic, OnuRecord, PonPortAddress
from ponscan.snmp.walker import open_target


class SnmpPoller:
    """Walk every dialect field subtree of a device and join rows by index.

    Each field is one bulk walk bounded by ``walk_timeout``; a failing walk
    becomes a diagnostic carrying its OID and the remaining walks continue.
    Values only come from what the agent returned: a field that is absent
    for an index stays unset.
    """

    def __init__(self, options: ScanOptions | None = None) -> None:
        self.options = options or ScanOptions()
        self.diagnostics: list[Diagnostic] = []

    async def poll(self, device: Device, dialect: VendorDialect) -> list[OnuRecord]:
        self.diagnostics = []
        if device.snmp_community is None or not dialect.snmp_fields:
            return []

        logger.info(f"Polling {device.name} ({device.host}:{device.snmp_port}) via SNMP")
        rows: dict[tuple[PonPortAddress, int], dict[str, Any]] = defaultdict(dict)
        try:
            async with open_target(device.host, device.snmp_port, device.snmp_community.get_secret_value()) as target:
                for field_name, column in dialect.snmp_fields.items():
                    try:
                        walked = await asyncio.wait_for(
                            target.walk(column.oid, dialect.snmp_index_len), timeout=self.options.walk_timeout
                        )
                    except TimeoutError:
                        self._warn(SnmpError(f"walk of {column.oid} timed out after {self.options.walk_timeout}s", column.oid))
                        continue
                    except SnmpError as e:
                        self._warn(e)
                        continue
                    self._join(rows, dialect, field_name, column.convert, walked)
        except SnmpError as e:
            self._warn(e)
            return []

        records = [self._build(key, values) for key, values in sorted(rows.items(), key=lambda kv: kv[0])]
        logger.info(f"[{device.host}] SNMP: {len(records)} ONU(s), {len(self.diagnostics)} diagnostic(s)")
        return records

    @staticmethod
    def _join(
        rows: dict[tuple[PonPortAddress, int], dict[str, Any]],
        dialect: VendorDialect,
        field_name: str,
        convert: Any,
        walked: list[tuple[tuple[int, ...], Any]],
    ) -> None:
        for index, raw in walked:
            try:
                key = dialect.decode_snmp_index(index)
            except ValueError:
                logger.debug(f"skipping undecodable index {index} in {field_name}")
                continue
            if key[1] < 1:
                continue
            try:
                value = convert(raw)
            except (TypeError, ValueError) as e:
                logger.debug(f"cannot convert {field_name} at {index}: {e}")
                continue
            if value is not None:
                rows[key][field_name] = value
            else:
                rows.setdefault(key, {})

    @staticmethod
    def _build(key: tuple[PonPortAddress, int], values: dict[str, Any]) -> OnuRecord:
        port, onu_id = key
        return OnuRecord(port=port, onu_id=onu_id, source="snmp", **values)

    def _warn(self, exc: SnmpError) -> None:
        logger.warning(str(exc))
        self.diagnostics.append(Diagnostic.from_exception(exc))
