"""Tests for SessionManager against the in-process fake OLT."""

from __future__ import annotations

import asyncio

import pytest

from fakeolt import DO, DONT, IAC, OPT_ECHO, OPT_NAWS, WILL, WONT, FakeOlt
from ponscan.exceptions import AuthenticationError, ConnectionError
from ponscan.models.device import ScanOptions, Vendor
from ponscan.telnet.session import SessionManager, SessionState, _TelnetFilter


class TestTelnetFilter:
    """Test IAC stripping and option refusal."""

    def test_plain_bytes_pass_through(self):
        f = _TelnetFilter()
        assert f.feed(b"Username:") == b"Username:"
        assert not f.replies

    def test_will_echo_accepted_do_refused(self):
        f = _TelnetFilter()
        out = f.feed(bytes((IAC, WILL, OPT_ECHO, IAC, DO, OPT_NAWS)) + b"login:")

        assert out == b"login:"
        assert bytes(f.replies) == bytes((IAC, DO, OPT_ECHO, IAC, WONT, OPT_NAWS))

    def test_unknown_will_refused(self):
        f = _TelnetFilter()
        f.feed(bytes((IAC, WILL, 24)))
        assert bytes(f.replies) == bytes((IAC, DONT, 24))

    def test_sequence_split_across_reads(self):
        f = _TelnetFilter()
        assert f.feed(bytes((IAC,))) == b""
        assert f.feed(bytes((DO, OPT_NAWS)) + b"ok") == b"ok"
        assert bytes(f.replies) == bytes((IAC, WONT, OPT_NAWS))

    def test_subnegotiation_stripped(self):
        f = _TelnetFilter()
        assert f.feed(bytes((IAC, 250, 24, 1, IAC, 240)) + b"x") == b"x"

    def test_escaped_iac(self):
        f = _TelnetFilter()
        assert f.feed(bytes((IAC, IAC))) == bytes((IAC,))


class TestOpen:
    """Test the login handshake."""

    def test_login_and_pagination(self, make_device, fast_options):
        async def run():
            async with FakeOlt() as olt:
                manager = SessionManager(fast_options)
                session = await manager.open(make_device(telnet_port=olt.port))
                state = session.state
                await manager.close(session)
                return olt, state, session

        olt, state, session = asyncio.run(run())

        assert state == SessionState.AUTHENTICATED
        assert session.state == SessionState.CLOSED
        assert "terminal length 0" in olt.received
        assert session.echo_seen is True

    def test_negotiation_refused(self, make_device, fast_options):
        async def run():
            async with FakeOlt() as olt:
                manager = SessionManager(fast_options)
                async with manager.session(make_device(telnet_port=olt.port)):
                    pass
                return olt

        olt = asyncio.run(run())
        assert bytes((IAC, WONT, OPT_NAWS)) in olt.negotiation
        assert bytes((IAC, DO, OPT_ECHO)) in olt.negotiation

    def test_wrong_password(self, make_device, fast_options):
        async def run():
            async with FakeOlt(password="other") as olt:
                manager = SessionManager(fast_options)
                await manager.open(make_device(telnet_port=olt.port))

        with pytest.raises(AuthenticationError):
            asyncio.run(run())

    def test_password_prompt_repeated(self, make_device, fast_options):
        async def run():
            async with FakeOlt(password="other", reprompt_password=True) as olt:
                manager = SessionManager(fast_options)
                await manager.open(make_device(telnet_port=olt.port))

        with pytest.raises(AuthenticationError, match="password prompt repeated"):
            asyncio.run(run())

    def test_preauthenticated_console(self, make_device, fast_options):
        async def run():
            async with FakeOlt(preauth=True) as olt:
                manager = SessionManager(fast_options)
                async with manager.session(make_device(telnet_port=olt.port)) as session:
                    return session.state

        assert asyncio.run(run()) == SessionState.AUTHENTICATED

    def test_enable_password(self, make_device, fast_options):
        async def run():
            async with FakeOlt(enable_password="en4ble") as olt:
                manager = SessionManager(fast_options)
                device = make_device(telnet_port=olt.port, enable_password="en4ble")
                async with manager.session(device) as session:
                    return olt, session.state

        olt, state = asyncio.run(run())
        assert state == SessionState.AUTHENTICATED
        assert "enable" in olt.received

    def test_enable_password_rejected(self, make_device, fast_options):
        async def run():
            async with FakeOlt(enable_password="en4ble") as olt:
                manager = SessionManager(fast_options)
                await manager.open(make_device(telnet_port=olt.port, enable_password="wrong"))

        with pytest.raises(AuthenticationError, match="Enable"):
            asyncio.run(run())

    def test_hioso_post_login_commands(self, make_device, fast_options):
        async def run():
            responses = {"configure terminal": "", "epon": ""}
            async with FakeOlt(responses, hostname="HIOSO", enable_password="en") as olt:
                manager = SessionManager(fast_options)
                device = make_device(vendor=Vendor.HIOSO_EPON, telnet_port=olt.port, enable_password="en")
                async with manager.session(device):
                    pass
                return olt

        olt = asyncio.run(run())
        assert olt.received == ["enable", "configure terminal", "epon", "terminal length 0"]

    def test_connection_refused(self, make_device, fast_options):
        async def run():
            olt = FakeOlt()
            await olt.start()
            port = olt.port
            await olt.stop()
            await SessionManager(fast_options).open(make_device(telnet_port=port))

        with pytest.raises(ConnectionError):
            asyncio.run(run())

    def test_silent_server_times_out(self, make_device):
        async def handler(reader, writer):
            await reader.read()

        async def run():
            server = await asyncio.start_server(handler, "127.0.0.1", 0)
            port = server.sockets[0].getsockname()[1]
            try:
                manager = SessionManager(ScanOptions(connect_timeout=0.3, command_timeout=0.3))
                await manager.open(make_device(telnet_port=port))
            finally:
                server.close()

        with pytest.raises(AuthenticationError, match="No login/shell prompt"):
            asyncio.run(run())


class TestClose:
    def test_close_is_idempotent(self, make_device, fast_options):
        async def run():
            async with FakeOlt() as olt:
                manager = SessionManager(fast_options)
                session = await manager.open(make_device(telnet_port=olt.port))
                await manager.close(session)
                await manager.close(session)
                return session

        session = asyncio.run(run())
        assert session.state == SessionState.CLOSED
        assert not session.is_open

    def test_context_manager_closes_on_error(self, make_device, fast_options):
        holder = {}

        async def run():
            async with FakeOlt() as olt:
                manager = SessionManager(fast_options)
                async with manager.session(make_device(telnet_port=olt.port)) as session:
                    holder["session"] = session
                    raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(run())
        assert holder["session"].state == SessionState.CLOSED
