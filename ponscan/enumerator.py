"""Bounded slot x port walk over the CLI."""

from __future__ import annotations

from loguru import logger

from ponscan.exceptions import CommandError, CommandTimeout, DeviceUnreachable, ParseError
from ponscan.models.device import ScanOptions
from ponscan.models.inventory import Diagnostic, OnuRecord, PonPortAddress
from ponscan.parsers import BaseResponseParser, get_parser
from ponscan.telnet.executor import CommandExecutor, CommandResult
from ponscan.telnet.session import Session

# lookup timeouts tolerated at the low ids of a port before the port is skipped
LOOKUP_TIMEOUT_LIMIT = 10


class PortEnumerator:
    """Walks every PON port of a device and collects the ONUs listed on it.

    Ports are visited slot-major. While no port has answered yet, timeouts
    count toward the bootstrap window; once it is exhausted the device is
    declared unreachable. Later timeouts are retried and then recorded as
    diagnostics. Dialects without a per-port listing are walked by entering
    each port view and looking ONU ids up one at a time.

    Attributes:
        visited: Addresses in the order they were queried.
        diagnostics: Non-fatal problems found during the last run.
    """

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        parser: BaseResponseParser | None = None,
        options: ScanOptions | None = None,
    ) -> None:
        self.options = options or ScanOptions()
        self.executor = executor or CommandExecutor(timeout=self.options.command_timeout)
        self.parser = parser
        self.visited: list[PonPortAddress] = []
        self.diagnostics: list[Diagnostic] = []

    async def enumerate(self, session: Session) -> list[OnuRecord]:
        """Query every port of ``session.device``.

        Raises:
            DeviceUnreachable: The first ``bootstrap_window`` ports all timed out.
            ConnectionError: The session dropped.
        """
        self.visited = []
        self.diagnostics = []
        device = session.device
        dialect = session.dialect
        parser = self.parser or get_parser(device.vendor)

        if not dialect.has_cli_inventory:
            logger.debug(f"[{device.host}] {dialect.name} has no CLI ONU listing, skipping port walk")
            return []

        window = min(self.options.bootstrap_window, device.port_count)
        bootstrapping = True
        consecutive = 0
        records: list[OnuRecord] = []

        for address in PonPortAddress.iter_device(device):
            self.visited.append(address)
            if dialect.looks_up_onus:
                command = dialect.port_view_cmd(address)
            else:
                command = dialect.onu_state_cmd(address)
            try:
                result = await self._run(session, command, retries=0 if bootstrapping else self.options.retry_timeouts)
            except CommandTimeout as e:
                if bootstrapping:
                    consecutive += 1
                    if consecutive >= window:
                        raise DeviceUnreachable(
                            f"{device.host}: first {consecutive} port queries timed out, giving up"
                        ) from e
                logger.warning(f"[{device.host}] port {address}: {e}")
                self.diagnostics.append(Diagnostic.from_exception(e, port=address))
                continue

            bootstrapping = False
            consecutive = 0
            if dialect.looks_up_onus:
                port_records = await self._look_up_port(session, parser, address, result)
            else:
                port_records = self._parse_port(result, parser, address)
            if port_records and self.options.fetch_details and dialect.onu_detail_command:
                port_records = [await self._with_detail(session, parser, r) for r in port_records]
            logger.debug(f"[{device.host}] port {address}: {len(port_records)} ONU(s)")
            records.extend(port_records)

        logger.info(
            f"[{device.host}] walked {len(self.visited)} port(s): {len(records)} ONU(s), "
            f"{len(self.diagnostics)} diagnostic(s)"
        )
        return records

    async def _run(self, session: Session, command: str, retries: int) -> CommandResult:
        attempt = 0
        while True:
            try:
                return await self.executor.execute(session, command)
            except CommandTimeout:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.debug(f"[{session.host}] retrying '{command}'")

    def _parse_port(self, result: CommandResult, parser: BaseResponseParser, address: PonPortAddress) -> list[OnuRecord]:
        try:
            result.raise_for_error()
            parsed = parser.parse_onu_states(result.text, address)
        except (CommandError, ParseError) as e:
            logger.warning(f"port {address}: {e}")
            self.diagnostics.append(Diagnostic.from_exception(e, port=address))
            return []

        unique: dict[int, OnuRecord] = {}
        for record in parsed:
            if record.onu_id in unique:
                self.diagnostics.append(
                    Diagnostic(kind="DuplicateOnu", message=f"ONU id {record.onu_id} listed twice", port=address)
                )
                continue
            unique[record.onu_id] = record
        return list(unique.values())

    async def _look_up_port(
        self, session: Session, parser: BaseResponseParser, address: PonPortAddress, entered: CommandResult
    ) -> list[OnuRecord]:
        """Ask for ONU ids 1..max_onu_id inside the port view, then leave it.

        A miss on id 1 means the port is empty. Lookup timeouts are recorded;
        past ``LOOKUP_TIMEOUT_LIMIT`` the rest of the port is skipped.
        """
        dialect = session.dialect
        try:
            entered.raise_for_error()
        except CommandError as e:
            logger.warning(f"[{session.host}] port {address}: {e}")
            self.diagnostics.append(Diagnostic.from_exception(e, port=address))
            return []

        records: list[OnuRecord] = []
        for onu_id in range(1, dialect.max_onu_id + 1):
            try:
                result = await self.executor.execute(session, dialect.onu_lookup_cmd(onu_id))
            except CommandTimeout as e:
                logger.warning(f"[{session.host}] {address}:{onu_id}: {e}")
                self.diagnostics.append(Diagnostic.from_exception(e, port=address))
                if onu_id > LOOKUP_TIMEOUT_LIMIT:
                    break
                continue
            record = self._looked_up(result, parser, address, onu_id)
            if record is None:
                if onu_id == 1:
                    break
                continue
            records.append(record)

        if dialect.port_exit_command:
            try:
                left = await self.executor.execute(session, dialect.port_exit_command)
                left.raise_for_error()
            except (CommandTimeout, CommandError) as e:
                logger.warning(f"[{session.host}] leaving port {address}: {e}")
                self.diagnostics.append(Diagnostic.from_exception(e, port=address))
        return records

    def _looked_up(
        self, result: CommandResult, parser: BaseResponseParser, address: PonPortAddress, onu_id: int
    ) -> OnuRecord | None:
        if result.is_error or result.is_empty:
            return None
        try:
            record = parser.parse_onu_detail(result.text, address, onu_id)
        except ParseError as e:
            self.diagnostics.append(Diagnostic.from_exception(e, port=address))
            return None
        if record.mac_address is None and record.serial is None and record.status is None:
            return None
        return record

    async def _with_detail(self, session: Session, parser: BaseResponseParser, listed: OnuRecord) -> OnuRecord:
        command = session.dialect.onu_detail_cmd(listed.port, listed.onu_id)
        try:
            result = await self.executor.execute(session, command)
            result.raise_for_error()
            detail = parser.parse_onu_detail(result.text, listed.port, listed.onu_id)
        except (CommandTimeout, CommandError, ParseError) as e:
            logger.warning(f"[{session.host}] detail {listed.port}:{listed.onu_id}: {e}")
            self.diagnostics.append(Diagnostic.from_exception(e, port=listed.port))
            return listed
        return detail.merge(listed)

