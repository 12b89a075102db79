"""One-command-at-a-time execution over an authenticated session."""

from __future__ import annotations

import re
from dataclasses import dataclass

from loguru import logger

from ponscan.exceptions import CommandError, CommandTimeout, SessionError
from ponscan.telnet.session import Session, SessionState

DEFAULT_TIMEOUT = 10.0

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_BACKSPACE = re.compile(r"[^\n]\x08")
_MORE_MARKER = re.compile(r"[ \t]*-+ ?\(?[Mm]ore\)? ?-+[ \t]*(?:\x08+|\r)?")


@dataclass
class CommandResult:
    """Cleaned output of one command.

    ``is_error`` is set when the device echoed one of the dialect's error
    markers; the result is still returned because per-id ONU lookups and
    empty ports answer with those markers too.
    """

    command: str
    text: str
    is_error: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def raise_for_error(self) -> None:
        if self.is_error:
            raise CommandError(f"'{self.command}' failed: {self.text.strip()[:200]}", self.command, self.text)


class CommandExecutor:
    """Sends CLI commands and frames their responses by prompt detection."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    async def execute(self, session: Session, command: str, timeout: float | None = None) -> CommandResult:
        """Run ``command`` and return its output with echo and prompt stripped.

        Raises:
            SessionError: Session is not ``Authenticated``.
            CommandTimeout: No prompt within ``timeout``; the session stays usable.
            ConnectionError: The socket dropped mid-command.
        """
        if session.state is not SessionState.AUTHENTICATED:
            raise SessionError(f"Cannot run '{command}' on {session.host}: session is {session.state.value}")

        timeout = timeout if timeout is not None else self.timeout
        prompt = session.dialect.shell_prompt
        async with session.lock:
            await session.discard_pending()
            await session.send_line(command)
            try:
                _, raw = await session.read_until(
                    (prompt,),
                    timeout,
                    require=command if session.echo_seen and command else None,
                )
            except TimeoutError as e:
                session.reset_buffer()
                logger.debug(f"[{session.host}] '{command}' timed out after {timeout}s")
                raise CommandTimeout(
                    f"No prompt from {session.host} within {timeout}s for '{command}'", command, timeout
                ) from e

        if command and command in raw:
            session.echo_seen = True
        text = self.clean_output(raw, command, prompt)
        result = CommandResult(command=command, text=text, is_error=session.dialect.is_error_output(text))
        logger.debug(f"[{session.host}] '{command}' -> {len(text)} chars{' (error)' if result.is_error else ''}")
        return result

    @staticmethod
    def clean_output(raw: str, command: str, prompt: re.Pattern[str]) -> str:
        """Strip terminal noise, the echoed command and the trailing prompt."""
        text = _ANSI_ESCAPE.sub("", raw)
        text = _MORE_MARKER.sub("", text)
        while _BACKSPACE.search(text):
            text = _BACKSPACE.sub("", text)
        text = text.replace("\r\n", "\n").replace("\r", "")

        match = prompt.search(text)
        if match:
            text = text[: match.start()]

        lines = text.split("\n")
        if command:
            # output that arrived late for an earlier command sits before the last echo
            echoes = [i for i, line in enumerate(lines) if line.rstrip().endswith(command)]
            if echoes:
                lines = lines[echoes[-1] + 1 :]
        return "\n".join(lines).strip("\n").rstrip()
