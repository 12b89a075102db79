"""ZTE C3xx/C6xx GPON output parsing."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from loguru import logger

from ponscan.exceptions import ParseError
from ponscan.models.device import Vendor
from ponscan.models.inventory import CardStatus, OnuRecord, PonPortAddress, UnconfiguredOnu
from ponscan.parsers.base import (
    BaseResponseParser,
    DetailLabel,
    normalize_status,
    parse_float,
    parse_int,
    parse_mac,
    parse_timestamp,
    register_parser,
    timestamp_label,
)

# gpon-onu_1/2/1:5 or the short 1/2/1:5 form (rack/slot/port:onu)
_ONU_ROW = re.compile(r"^\s*(?:gpon-onu_)?(\d+)/(\d+)/(\d+):(\d+)\s*(.*)$")
_ONU_REF = re.compile(r"gpon-onu_\S+|\b\d+/\d+/\d+:\d+\b")
_GPON_SERIAL = re.compile(r"^(?:SN:)?([A-Z]{4}[0-9A-F]{8})$")
_GPON_SERIAL_ANY = re.compile(r"\b([A-Z]{4}[0-9A-F]{8})\b")
_CHANNEL = re.compile(r"^\d+\(\w+\)$")
_PORT_HINT = re.compile(r"^(?:gpon-(?:onu|olt)_)?\d+/\d+/\d+(?::\d+)?$")
_HISTORY_ROW = re.compile(
    r"^\s*\d+\s+(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s*(.*?)\s*$"
)


def _distance(value: str) -> int | None:
    return parse_int(value.lower().replace("m", ""))


def _render_distance(value: int) -> str:
    return f"{value}m"


def _render_power(value: float) -> str:
    return f"{value}(dbm)"


@register_parser(Vendor.ZTE_GPON)
class ZteGponParser(BaseResponseParser):
    """Parses ``show card``, ``show gpon onu state|detail-info|uncfg``."""

    detail_labels = (
        DetailLabel("name", "Name"),
        DetailLabel("onu_type", "Type"),
        DetailLabel("admin_state", "Admin state"),
        DetailLabel("phase_state", "Phase state"),
        DetailLabel("config_state", "Config state"),
        DetailLabel("auth_mode", "Authentication mode"),
        DetailLabel("serial", "Serial number", ("SN", "Serial")),
        DetailLabel("mac_address", "MAC address", ("MAC",), parse_mac),
        DetailLabel("description", "Description"),
        DetailLabel("line_profile", "Line Profile"),
        DetailLabel("service_profile", "Service Profile"),
        DetailLabel("vlan_id", "VLAN", ("VLAN ID",), parse_int),
        DetailLabel("bandwidth_profile", "Bandwidth profile", ("TCONT profile",)),
        DetailLabel("distance", "ONU Distance", ("Distance",), _distance, _render_distance),
        DetailLabel("signal_rx", "Rx optical power", ("Rx power", "ONU Rx"), parse_float, _render_power),
        DetailLabel("signal_tx", "Tx optical power", ("Tx power", "ONU Tx"), parse_float, _render_power),
        DetailLabel("online_duration", "Online Duration"),
        timestamp_label("registration_date", "Last authpass time", "Authpass time"),
        timestamp_label("last_online", "Last offline time", "Offline time"),
        DetailLabel("last_down_cause", "Last down cause", ("Offline reason",)),
    )

    def parse_cards(self, text: str) -> list[CardStatus]:
        """Parse ``show card``.

        Full rows are ``Rack Shelf Slot CfgType RealType Port HardVer SoftVer Status``;
        older firmware omits the version columns, in which case the configured
        type is used.
        """
        cards = []
        body = self._body_lines(text)
        for line in body:
            tokens = line.split()
            if len(tokens) < 5 or not all(t.isdigit() for t in tokens[:3]):
                continue
            rack, shelf, slot = (int(t) for t in tokens[:3])
            if len(tokens) >= 9:
                card = CardStatus(
                    rack=rack,
                    shelf=shelf,
                    slot=slot,
                    card_type=tokens[4],
                    port_count=int(tokens[5]) if tokens[5].isdigit() else None,
                    hard_version=tokens[6],
                    soft_version=tokens[7],
                    status=tokens[-1],
                )
            else:
                card = CardStatus(rack=rack, shelf=shelf, slot=slot, card_type=tokens[3], status=tokens[-1])
            cards.append(card)
        if not cards and self._has_table(text) and body:
            raise ParseError("Card table present but no card rows matched", text)
        return cards

    def parse_onu_states(self, text: str, port: PonPortAddress) -> list[OnuRecord]:
        """Parse ``show gpon onu state gpon-olt_1/<slot>/<port>``.

        Rows are ``OnuIndex Admin-State OMCC-State Phase-State [Channel]``;
        some firmware inserts the serial after the index.
        """
        records = []
        foreign = 0
        for line in text.splitlines():
            m = _ONU_ROW.match(line)
            if not m:
                continue
            slot, port_no, onu_id = int(m.group(2)), int(m.group(3)), int(m.group(4))
            if (slot, port_no) != (port.slot, port.port):
                foreign += 1
                continue
            if onu_id < 1:
                continue
            records.append(self._state_row(port, onu_id, m.group(5).split()))

        if not records:
            if foreign:
                raise ParseError(f"ONU rows belong to another port than {port}", text)
            if _ONU_REF.search(text):
                raise ParseError(f"ONU identifiers present but no state rows matched for {port}", text)
        return records

    @staticmethod
    def _state_row(port: PonPortAddress, onu_id: int, tokens: list[str]) -> OnuRecord:
        while tokens and _CHANNEL.match(tokens[-1]):
            tokens.pop()
        serial = None
        rest = []
        for token in tokens:
            sm = _GPON_SERIAL.match(token)
            if sm and serial is None:
                serial = sm.group(1)
            else:
                rest.append(token)

        values: dict[str, Any] = {"serial": serial}
        if rest:
            values["admin_state"] = rest[0]
        if len(rest) >= 2:
            values["phase_state"] = rest[-1]
            values["status"] = normalize_status(rest[-1])
        elif rest:
            values["status"] = normalize_status(rest[0])
        return OnuRecord(port=port, onu_id=onu_id, **values)

    def parse_uncfg(self, text: str) -> list[UnconfiguredOnu]:
        """Parse ``show gpon onu uncfg``: ``OnuIndex Sn State`` rows."""
        found = []
        for line in text.splitlines():
            m = _GPON_SERIAL_ANY.search(line)
            if not m:
                continue
            tokens = line.split()
            hint = tokens[0] if _PORT_HINT.match(tokens[0]) else ""
            after = line[m.end() :].split()
            found.append(UnconfiguredOnu(serial=m.group(1), port_hint=hint, onu_type=after[0] if len(after) > 1 else ""))
        if not found and _ONU_REF.search(text):
            raise ParseError("Unconfigured ONU rows present but no serial matched", text)
        return found

    def _detail_extras(self, text: str, values: dict[str, Any]) -> dict[str, Any]:
        """Read the ``AuthpassTime OfflineTime Cause`` history table.

        The latest authpass becomes ``registration_date``; the latest valid
        offline row provides ``last_online`` and ``last_down_cause``.
        """
        authpass: list[datetime] = []
        offline: list[tuple[datetime, str]] = []
        for line in text.splitlines():
            m = _HISTORY_ROW.match(line)
            if not m:
                continue
            up = parse_timestamp(m.group(1))
            down = parse_timestamp(m.group(2))
            if up is not None:
                authpass.append(up)
            if down is not None:
                offline.append((down, m.group(3)))

        extra: dict[str, Any] = {}
        if authpass:
            extra["registration_date"] = max(authpass)
        if offline:
            when, cause = max(offline, key=lambda row: row[0])
            extra["last_online"] = when
            if cause:
                extra["last_down_cause"] = cause
        if extra:
            logger.trace(f"history table: {len(authpass)} authpass, {len(offline)} offline rows")
        return extra
