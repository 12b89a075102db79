"""Device-level discovery: CLI walk, SNMP poll, merge."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from datetime import datetime

from loguru import logger

from ponscan.dialects import VendorDialect, get_dialect
from ponscan.enumerator import PortEnumerator
from ponscan.exceptions import FATAL_ERRORS, CommandError, CommandTimeout, ParseError, PonScanError, ScanCancelled
from ponscan.models.device import Device, ScanOptions
from ponscan.models.inventory import CardStatus, Diagnostic, OnuRecord, ScanResult
from ponscan.parsers import BaseResponseParser, get_parser
from ponscan.snmp.poller import SnmpPoller
from ponscan.telnet.executor import CommandExecutor
from ponscan.telnet.session import Session, SessionManager

DEFAULT_WORKERS = 4


def merge_records(cli: Iterable[OnuRecord], snmp: Iterable[OnuRecord]) -> list[OnuRecord]:
    """Join CLI and SNMP records by (port, onu_id); CLI values win per field."""
    merged: dict[tuple, OnuRecord] = {}
    for record in cli:
        merged.setdefault(record.key, record)
    for record in snmp:
        existing = merged.get(record.key)
        if existing is None:
            merged[record.key] = record
        else:
            merged[record.key] = existing.merge(record, source="cli+snmp")
    return [merged[key] for key in sorted(merged)]


class DiscoveryOrchestrator:
    """Runs complete scans of one or many devices.

    Holds no per-device state: every scan opens its own session and SNMP
    engine, so ``scan_many`` can run scans side by side.
    """

    def __init__(
        self,
        options: ScanOptions | None = None,
        sessions: SessionManager | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.options = options or ScanOptions()
        self.sessions = sessions or SessionManager(self.options)
        self.executor = executor or CommandExecutor(timeout=self.options.command_timeout)

    def scan_sync(self, device: Device) -> ScanResult:
        """Synchronous entry point; wraps the async implementation."""
        return asyncio.run(self.scan(device))

    async def scan(self, device: Device) -> ScanResult:
        """Discover cards and ONUs of ``device``.

        Raises:
            ConnectionError, AuthenticationError, DeviceUnreachable: Fatal for this device.
            ScanCancelled: ``options.deadline`` expired; the session is closed.
        """
        result = ScanResult(device=device.name, vendor=device.vendor.value, started_at=datetime.now())
        dialect = get_dialect(device.vendor)
        parser = get_parser(device.vendor)

        if self.options.deadline is None:
            await self._scan(device, dialect, parser, result)
        else:
            deadline = asyncio.timeout(self.options.deadline)
            try:
                async with deadline:
                    await self._scan(device, dialect, parser, result)
            except TimeoutError as e:
                if not deadline.expired():
                    raise
                raise ScanCancelled(f"Scan of {device.name} exceeded {self.options.deadline}s deadline") from e

        result.finished_at = datetime.now()
        logger.info(
            f"Scan of {device.name} done: {len(result.cards)} card(s), {result.onu_count} ONU(s), "
            f"{len(result.diagnostics)} diagnostic(s)"
        )
        return result

    async def scan_many(self, devices: Sequence[Device], max_workers: int = DEFAULT_WORKERS) -> list[ScanResult]:
        """Scan devices with at most ``max_workers`` in flight.

        Returns one result per device in input order; fatal errors are
        recorded in ``ScanResult.error`` instead of being raised.
        """
        semaphore = asyncio.Semaphore(max(1, max_workers))

        async def worker(device: Device) -> ScanResult:
            async with semaphore:
                try:
                    return await self.scan(device)
                except PonScanError as e:
                    if isinstance(e, FATAL_ERRORS):
                        logger.error(f"Scan of {device.name} ({device.host}) failed: {type(e).__name__}: {e}")
                    else:
                        # non-fatal errors are meant to become diagnostics inside scan()
                        logger.exception(f"Scan of {device.name} ({device.host}) aborted unexpectedly")
                    return ScanResult(
                        device=device.name,
                        vendor=device.vendor.value,
                        started_at=datetime.now(),
                        finished_at=datetime.now(),
                        error=f"{type(e).__name__}: {e}",
                    )

        return list(await asyncio.gather(*(worker(d) for d in devices)))

    def scan_many_sync(self, devices: Sequence[Device], max_workers: int = DEFAULT_WORKERS) -> list[ScanResult]:
        return asyncio.run(self.scan_many(devices, max_workers))

    async def _scan(
        self, device: Device, dialect: VendorDialect, parser: BaseResponseParser, result: ScanResult
    ) -> None:
        cli_records: list[OnuRecord] = []
        if device.telnet_enabled:
            async with self.sessions.session(device, dialect) as session:
                result.cards = await self._cards(session, parser, result)
                if self.options.fetch_uncfg:
                    await self._uncfg(session, parser, result)
                enumerator = PortEnumerator(self.executor, parser, self.options)
                cli_records = await enumerator.enumerate(session)
                result.diagnostics.extend(enumerator.diagnostics)

        snmp_records: list[OnuRecord] = []
        if device.snmp_enabled:
            poller = SnmpPoller(self.options)
            snmp_records = await poller.poll(device, dialect)
            result.diagnostics.extend(poller.diagnostics)

        result.onus = merge_records(cli_records, snmp_records)

    async def _cards(self, session: Session, parser: BaseResponseParser, result: ScanResult) -> list[CardStatus]:
        command = session.dialect.card_command
        if command is None:
            return []
        try:
            output = await self.executor.execute(session, command)
            output.raise_for_error()
            return parser.parse_cards(output.text)
        except (CommandTimeout, CommandError, ParseError) as e:
            logger.warning(f"[{session.host}] card listing: {e}")
            result.diagnostics.append(Diagnostic.from_exception(e))
            return []

    async def _uncfg(self, session: Session, parser: BaseResponseParser, result: ScanResult) -> None:
        command = session.dialect.uncfg_command
        if command is None:
            return
        try:
            output = await self.executor.execute(session, command)
            output.raise_for_error()
            found = parser.parse_uncfg(output.text)
        except (CommandTimeout, CommandError, ParseError) as e:
            logger.warning(f"[{session.host}] unconfigured ONU listing: {e}")
            result.diagnostics.append(Diagnostic.from_exception(e))
            return
        for onu in found:
            where = f" on {onu.port_hint}" if onu.port_hint else ""
            result.diagnostics.append(Diagnostic(kind="Unconfigured", message=f"unconfigured ONU {onu.serial}{where}"))
        if found:
            logger.info(f"[{session.host}] {len(found)} unconfigured ONU(s) awaiting registration")
