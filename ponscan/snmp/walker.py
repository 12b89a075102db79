"""Async SNMPv2c subtree walks."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from pysnmp.error import PySnmpError
from pysnmp.hlapi.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    bulk_walk_cmd,
)

from ponscan.exceptions import SnmpError

# per-request UDP timeout and retries; the walk as a whole is bounded by the caller
REQUEST_TIMEOUT = 2.0
REQUEST_RETRIES = 2
MAX_REPETITIONS = 25


async def snmp_walk_table(
    engine: Any,
    auth: Any,
    target: Any,
    oid: str,
    index_len: int = 1,
    host: str = "",
) -> list[tuple[tuple[int, ...], Any]]:
    """Bulk-walk an OID subtree.

    Returns (index, value) tuples where ``index`` holds the last
    ``index_len`` components of each varbind OID.

    Raises:
        SnmpError: On an error indication or error status from the agent.
    """
    tag = f" [{host}]" if host else ""
    results: list[tuple[tuple[int, ...], Any]] = []
    async for error_indication, error_status, _, var_binds in bulk_walk_cmd(
        engine,
        auth,
        target,
        ContextData(),
        0,
        MAX_REPETITIONS,  # nonRepeaters, maxRepetitions
        ObjectType(ObjectIdentity(oid)),
        lexicographicMode=False,
    ):
        if error_indication:
            logger.warning(f"SNMP walk error{tag} on {oid}: {error_indication}")
            raise SnmpError(f"walk of {oid} failed: {error_indication}", oid)
        if error_status:
            logger.warning(f"SNMP walk error{tag} on {oid}: {error_status.prettyPrint()}")
            raise SnmpError(f"walk of {oid} failed: {error_status.prettyPrint()}", oid)
        for var_bind_oid, val in var_binds:
            idx = tuple(int(var_bind_oid[-i]) for i in range(index_len, 0, -1))
            results.append((idx, val))
    return results


class SnmpTarget:
    """One agent endpoint bound to an engine owned by the caller's scope."""

    def __init__(self, engine: Any, auth: Any, target: Any, host: str) -> None:
        self.engine = engine
        self.auth = auth
        self.target = target
        self.host = host

    async def walk(self, oid: str, index_len: int = 1) -> list[tuple[tuple[int, ...], Any]]:
        return await snmp_walk_table(self.engine, self.auth, self.target, oid, index_len, host=self.host)


@asynccontextmanager
async def open_target(host: str, port: int, community: str) -> AsyncIterator[SnmpTarget]:
    """Create a private engine for ``host`` and close its dispatcher on exit."""
    engine = SnmpEngine()
    try:
        try:
            target = await UdpTransportTarget.create((host, port), timeout=REQUEST_TIMEOUT, retries=REQUEST_RETRIES)
        except PySnmpError as e:
            raise SnmpError(f"cannot resolve SNMP target {host}:{port}: {e}") from e
        yield SnmpTarget(engine, CommunityData(community), target, host)
    finally:
        engine.close_dispatcher()
