"""Telnet session lifecycle: connect, login handshake, pagination, close."""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from enum import Enum

from loguru import logger

from ponscan.dialects import VendorDialect, get_dialect
from ponscan.exceptions import AuthenticationError, ConnectionError, SessionError
from ponscan.models.device import Device, ScanOptions

BUFFER_SIZE = 4096
DRAIN_GRACE = 0.01

# Telnet protocol bytes (RFC 854)
IAC = 255
DONT = 254
DO = 253
WONT = 252
WILL = 251
SB = 250
SE = 240
OPT_ECHO = 1
OPT_SGA = 3


class SessionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    AWAITING_USERNAME = "AwaitingUsername"
    AWAITING_PASSWORD = "AwaitingPassword"
    AUTHENTICATED = "Authenticated"
    CLOSED = "Closed"
    ERROR = "Error"


TERMINAL_STATES = (SessionState.CLOSED, SessionState.ERROR)


class _TelnetFilter:
    """Strips IAC sequences from the byte stream and queues refusals.

    Only ECHO and SUPPRESS-GO-AHEAD are accepted from the server; every other
    option is refused. Sequences split across reads are carried over.
    """

    def __init__(self) -> None:
        self._pending = b""
        self.replies = bytearray()

    def feed(self, data: bytes) -> bytes:
        data = self._pending + data
        self._pending = b""
        out = bytearray()
        i = 0
        while i < len(data):
            byte = data[i]
            if byte != IAC:
                out.append(byte)
                i += 1
                continue
            if i + 1 >= len(data):
                self._pending = data[i:]
                break
            cmd = data[i + 1]
            if cmd == IAC:
                out.append(IAC)
                i += 2
            elif cmd in (DO, DONT, WILL, WONT):
                if i + 2 >= len(data):
                    self._pending = data[i:]
                    break
                opt = data[i + 2]
                if cmd == DO:
                    self.replies += bytes((IAC, WONT, opt))
                elif cmd == WILL:
                    self.replies += bytes((IAC, DO if opt in (OPT_ECHO, OPT_SGA) else DONT, opt))
                i += 3
            elif cmd == SB:
                end = data.find(bytes((IAC, SE)), i + 2)
                if end < 0:
                    self._pending = data[i:]
                    break
                i = end + 2
            else:
                i += 2
        return bytes(out)


class Session:
    """A live Telnet connection to one OLT, owned by exactly one scan.

    At most one command is in flight at a time (``lock``); all reads go
    through ``read_until`` which accumulates decoded text in a private buffer
    that is reset after every match.
    """

    def __init__(
        self,
        device: Device,
        dialect: VendorDialect,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        self.device = device
        self.dialect = dialect
        self.state = SessionState.CONNECTING
        self.lock = asyncio.Lock()
        self.echo_seen = False
        self._reader = reader
        self._writer = writer
        self._filter = _TelnetFilter()
        self._buffer = ""

    @property
    def host(self) -> str:
        return self.device.host

    @property
    def is_open(self) -> bool:
        return self.state not in TERMINAL_STATES and not self._writer.is_closing()

    @property
    def buffer(self) -> str:
        return self._buffer

    def reset_buffer(self) -> None:
        self._buffer = ""

    async def send_line(self, text: str) -> None:
        if not self.is_open:
            raise SessionError(f"Session to {self.host} is {self.state.value}")
        self._writer.write((text + self.dialect.line_terminator).encode("utf-8"))
        await self._flush()

    async def _flush(self) -> None:
        if self._filter.replies:
            self._writer.write(bytes(self._filter.replies))
            self._filter.replies.clear()
        try:
            await self._writer.drain()
        except OSError as e:
            self.state = SessionState.ERROR
            raise ConnectionError(f"Write to {self.host} failed: {e}") from e

    async def _receive(self) -> str:
        try:
            data = await self._reader.read(BUFFER_SIZE)
        except OSError as e:
            self.state = SessionState.ERROR
            raise ConnectionError(f"Read from {self.host} failed: {e}") from e
        if not data:
            self.state = SessionState.ERROR
            raise ConnectionError(f"Connection to {self.host} closed by peer")
        clean = self._filter.feed(data)
        if self._filter.replies:
            await self._flush()
        chunk = clean.decode("utf-8", errors="replace")
        self._buffer += chunk
        return chunk

    async def read_until(
        self,
        patterns: Sequence[re.Pattern[str]],
        timeout: float,
        require: str | None = None,
    ) -> tuple[int, str]:
        """Accumulate output until one of ``patterns`` matches the buffer.

        Args:
            patterns: Regexes tried in order against the whole buffer.
            timeout: Seconds before ``TimeoutError`` is raised.
            require: Text that must also be present (the echoed command), so
                a stale prompt left by an earlier command is not taken as
                the end of this one.

        Returns:
            (index of the matching pattern, buffered text). The buffer is
            reset on return.
        """
        async with asyncio.timeout(timeout):
            while True:
                if require is None or require in self._buffer:
                    for idx, pattern in enumerate(patterns):
                        if pattern.search(self._buffer):
                            text = self._buffer
                            self._buffer = ""
                            return idx, text
                await self._receive()

    async def discard_pending(self) -> None:
        """Drop whatever the device sent since the last prompt."""
        while True:
            try:
                await asyncio.wait_for(self._receive(), timeout=DRAIN_GRACE)
            except TimeoutError:
                break
        if self._buffer:
            logger.debug(f"[{self.host}] discarded {len(self._buffer)} stale chars")
        self._buffer = ""

    def abort(self) -> None:
        """Close the socket immediately; safe to call more than once."""
        if self.state not in TERMINAL_STATES:
            self.state = SessionState.CLOSED
        try:
            self._writer.close()
        except RuntimeError:
            # event loop already closed
            pass


class SessionManager:
    """Opens and closes Telnet sessions for devices.

    Holds only timeouts; every call takes the device explicitly so any number
    of scans can share one manager.
    """

    def __init__(self, options: ScanOptions | None = None) -> None:
        self.options = options or ScanOptions()

    async def open(self, device: Device, dialect: VendorDialect | None = None) -> Session:
        """Connect, authenticate and disable pagination.

        Raises:
            ConnectionError: Refused or timed-out TCP connect.
            AuthenticationError: Credentials rejected or no prompt in time.
        """
        dialect = dialect or get_dialect(device.vendor)
        logger.info(f"Connecting to {device.vendor.value} OLT {device.name} at {device.host}:{device.telnet_port}")
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(device.host, device.telnet_port),
                timeout=self.options.connect_timeout,
            )
        except TimeoutError as e:
            raise ConnectionError(
                f"Connect to {device.host}:{device.telnet_port} timed out after {self.options.connect_timeout}s"
            ) from e
        except OSError as e:
            raise ConnectionError(f"Connect to {device.host}:{device.telnet_port} failed: {e}") from e

        session = Session(device, dialect, reader, writer)
        try:
            await self._login(session)
            await self._prepare_shell(session)
        except BaseException:
            if session.state is not SessionState.CLOSED:
                session.state = SessionState.ERROR
            session.abort()
            raise
        logger.info(f"Authenticated to {device.name} ({device.host})")
        return session

    async def close(self, session: Session) -> None:
        """Release the socket. Idempotent."""
        was_open = session.state not in TERMINAL_STATES
        session.abort()
        if was_open:
            session.state = SessionState.CLOSED
            logger.debug(f"Session to {session.host} closed")
        try:
            await asyncio.wait_for(session._writer.wait_closed(), timeout=1.0)
        except (OSError, TimeoutError):
            pass

    @asynccontextmanager
    async def session(self, device: Device, dialect: VendorDialect | None = None) -> AsyncIterator[Session]:
        """Scoped session: closed on success, error and cancellation alike."""
        session = await self.open(device, dialect)
        try:
            yield session
        finally:
            await self.close(session)

    async def _login(self, session: Session) -> None:
        dialect = session.dialect
        device = session.device
        session.state = SessionState.AWAITING_USERNAME
        password_sent = False
        prompts = (dialect.password_prompt, dialect.login_prompt, dialect.shell_prompt)

        try:
            async with asyncio.timeout(self.options.connect_timeout):
                while True:
                    patterns = (*prompts, dialect.login_failed) if password_sent else prompts
                    idx, _ = await session.read_until(patterns, timeout=self.options.connect_timeout)
                    if idx == 3:
                        raise AuthenticationError(f"Login to {device.host} rejected")
                    if idx == 0:
                        if password_sent:
                            raise AuthenticationError(f"Login to {device.host} rejected: password prompt repeated")
                        session.state = SessionState.AWAITING_PASSWORD
                        await session.send_line(device.telnet_password.get_secret_value())
                        password_sent = True
                    elif idx == 1:
                        if password_sent:
                            raise AuthenticationError(f"Login to {device.host} rejected: login prompt repeated")
                        await session.send_line(device.telnet_username)
                        session.state = SessionState.AWAITING_PASSWORD
                    else:
                        session.state = SessionState.AUTHENTICATED
                        return
        except TimeoutError as e:
            state = session.state.value
            raise AuthenticationError(
                f"No login/shell prompt from {device.host} within {self.options.connect_timeout}s (state {state})"
            ) from e

    async def _prepare_shell(self, session: Session) -> None:
        dialect = session.dialect
        device = session.device
        timeout = self.options.command_timeout

        if dialect.enable_command and device.enable_password is not None:
            await session.send_line(dialect.enable_command)
            try:
                idx, _ = await session.read_until((dialect.password_prompt, dialect.shell_prompt), timeout)
                if idx == 0:
                    await session.send_line(device.enable_password.get_secret_value())
                    idx, _ = await session.read_until((dialect.password_prompt, dialect.shell_prompt), timeout)
                    if idx == 0:
                        raise AuthenticationError(f"Enable password rejected by {device.host}")
            except TimeoutError as e:
                raise AuthenticationError(f"No prompt from {device.host} after '{dialect.enable_command}'") from e

        setup = list(dialect.post_login_commands)
        if dialect.pagination_command:
            setup.append(dialect.pagination_command)
        for command in setup:
            await session.send_line(command)
            try:
                _, text = await session.read_until((dialect.shell_prompt,), timeout, require=command)
            except TimeoutError:
                logger.warning(f"[{device.host}] no prompt after '{command}', continuing")
                session.reset_buffer()
                continue
            session.echo_seen = True
            if dialect.is_error_output(text):
                logger.warning(f"[{device.host}] '{command}' rejected: {text.strip()[-120:]}")
