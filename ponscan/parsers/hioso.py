"""HIOSO EPON output parsing.

HIOSO firmware has no per-port ONU listing; ``show onu <id>`` inside a
port view prints one ONU as label lines. The MAC and the state word are
sometimes printed without a label.
"""

from __future__ import annotations

from ponscan.models.device import Vendor
from ponscan.models.inventory import OnuStatus
from ponscan.parsers.base import (
    BaseResponseParser,
    DetailLabel,
    is_status_word,
    normalize_status,
    parse_float,
    parse_int,
    parse_mac,
    register_parser,
)


def _status(value: str) -> OnuStatus | None:
    return normalize_status(value)


def _render_status(value: OnuStatus) -> str:
    return value.value


@register_parser(Vendor.HIOSO_EPON)
class HiosoEponParser(BaseResponseParser):
    detail_labels = (
        DetailLabel("name", "Name", ("ONU name",)),
        DetailLabel("onu_type", "Type", ("Model", "ONU type")),
        DetailLabel("status", "Status", ("Online status", "State"), _status, _render_status),
        DetailLabel("serial", "Serial Number", ("SN", "Serial")),
        DetailLabel("mac_address", "MAC", ("MAC address", "ONU MAC"), parse_mac),
        DetailLabel("description", "Description"),
        DetailLabel("vlan_id", "VLAN", ("PVID",), parse_int),
        DetailLabel("distance", "Distance", ("RTT distance",), parse_int),
        DetailLabel("signal_rx", "Rx Power", ("Receive power",), parse_float),
        DetailLabel("signal_tx", "Tx Power", ("Transmit power",), parse_float),
    )

    def _detail_extras(self, text: str, values: dict) -> dict:
        extra = {}
        if "mac_address" not in values:
            mac = parse_mac(text)
            if mac:
                extra["mac_address"] = mac
        if "status" not in values:
            # label lines are left alone: "Admin state : up" is not the ONU state
            bare = [line for line in text.splitlines() if ":" not in line]
            word = next((t for line in bare for t in line.split() if is_status_word(t)), None)
            if word is not None:
                extra["status"] = normalize_status(word)
        return extra
