"""HIOSO EPON dialect (BDCOM/CData compatible MIB)."""

from __future__ import annotations

from ponscan.dialects.base import SnmpField, VendorDialect
from ponscan.dialects.factory import register_dialect
from ponscan.models.device import Vendor
from ponscan.models.inventory import OnuStatus, PonPortAddress
from ponscan.snmp._util import format_mac, scaled

OID_HIOSO_ONU_ONLINE = "1.3.6.1.4.1.3320.101.11.4.1.5"
OID_HIOSO_ONU_MAC = "1.3.6.1.4.1.3320.101.10.1.1.76"
OID_HIOSO_ONU_RX_POWER = "1.3.6.1.4.1.3320.101.10.5.1.5"
OID_HIOSO_ONU_TX_POWER = "1.3.6.1.4.1.3320.101.10.5.1.6"


def _hioso_status(value: object) -> OnuStatus:
    return OnuStatus.ONLINE if int(value) == 1 else OnuStatus.OFFLINE  # type: ignore[call-overload]


@register_dialect(Vendor.HIOSO_EPON)
class HiosoEponDialect(VendorDialect):
    """HIOSO EPON OLTs have no per-port ONU listing.

    Reaching the EPON view takes an enable step plus ``configure terminal``
    and ``epon``. From there each PON port is entered with ``pon<slot>/<port>``
    and ONU ids are looked up one by one with ``show onu <id>``. SNMP exposes
    the same ONUs through the BDCOM tables.
    """

    enable_command = "enable"
    post_login_commands = ("configure terminal", "epon")

    port_view_command = "{port}"
    port_exit_command = "exit"
    onu_lookup_command = "show onu {onu_id}"
    max_onu_id = 128

    port_template = "pon{slot}/{port}"
    onu_template = "{slot}/{port}:{onu_id}"

    # lookups of unused ids answer in lower case
    error_markers = ("Invalid", "invalid", "Unrecognized", "Error", "error", "Not found", "not found")

    snmp_fields = {
        "status": SnmpField(OID_HIOSO_ONU_ONLINE, _hioso_status),
        "mac_address": SnmpField(OID_HIOSO_ONU_MAC, format_mac),
        "signal_rx": SnmpField(OID_HIOSO_ONU_RX_POWER, scaled(0.1)),
        "signal_tx": SnmpField(OID_HIOSO_ONU_TX_POWER, scaled(0.1)),
    }
    snmp_index_len = 1

    def decode_snmp_index(self, index: tuple[int, ...]) -> tuple[PonPortAddress, int]:
        # (slot << 16) | (port << 8) | onu; a zero slot/port means the single PON card
        if_index = index[-1]
        slot = (if_index >> 16) & 0xFF
        port = (if_index >> 8) & 0xFF
        onu_id = if_index & 0xFF
        return PonPortAddress(slot or 1, port or 1), onu_id
