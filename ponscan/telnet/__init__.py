"""Telnet CLI transport: session handshake and command framing."""

from ponscan.telnet.executor import CommandExecutor, CommandResult
from ponscan.telnet.session import Session, SessionManager, SessionState

__all__ = [
    "Session",
    "SessionManager",
    "SessionState",
    "CommandExecutor",
    "CommandResult",
]
