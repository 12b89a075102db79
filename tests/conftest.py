"""Shared fixtures for the ponscan test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from ponscan.dialects import get_dialect
from ponscan.exceptions import CommandTimeout
from ponscan.models.device import Device, ScanOptions, Vendor
from ponscan.parsers import get_parser
from ponscan.telnet.executor import CommandResult

# ── device fixtures ───────────────────────────────────────────────────


@pytest.fixture()
def make_device():
    """Factory fixture returning a Device with customizable fields."""

    def _make(**kwargs):
        defaults = {
            "name": "olt-test",
            "vendor": Vendor.ZTE_GPON,
            "host": "127.0.0.1",
            "telnet_username": "admin",
            "telnet_password": "secret",
            "total_pon_slots": 1,
            "ports_per_slot": 4,
        }
        defaults.update(kwargs)
        return Device(**defaults)

    return _make


@pytest.fixture()
def fast_options():
    """ScanOptions with short timeouts for in-process tests."""
    return ScanOptions(connect_timeout=2.0, command_timeout=0.3, walk_timeout=1.0)


@pytest.fixture()
def zte_dialect():
    return get_dialect(Vendor.ZTE_GPON)


@pytest.fixture()
def zte_parser():
    return get_parser(Vendor.ZTE_GPON)


@pytest.fixture()
def hioso_parser():
    return get_parser(Vendor.HIOSO_EPON)


# ── executor mocks ────────────────────────────────────────────────────


@pytest.fixture()
def mock_session(make_device, zte_dialect):
    """MagicMock of an authenticated Session bound to a ZTE device."""
    session = MagicMock()
    session.device = make_device()
    session.dialect = zte_dialect
    session.host = session.device.host
    return session


@pytest.fixture()
def scripted_executor():
    """AsyncMock executor answering from a command -> output mapping.

    A value of ``CommandTimeout`` (the class) makes that command time out;
    unknown commands return empty output. Every command is recorded in
    ``executor.commands``.
    """

    def _make(script: dict, dialect=None):
        executor = MagicMock()
        executor.commands = []

        async def _execute(session, command, timeout=None):
            executor.commands.append(command)
            value = script.get(command, "")
            if isinstance(value, list):
                value = value.pop(0) if value else ""
            if value is CommandTimeout:
                raise CommandTimeout(f"timed out: {command}", command, 0.1)
            is_error = (dialect or session.dialect).is_error_output(value)
            return CommandResult(command=command, text=value, is_error=is_error)

        executor.execute = AsyncMock(side_effect=_execute)
        return executor

    return _make
