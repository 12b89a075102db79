"""ZTE C300/C320 GPON dialect."""

from __future__ import annotations

from ponscan.dialects.base import SnmpField, VendorDialect
from ponscan.dialects.factory import register_dialect
from ponscan.models.device import Vendor
from ponscan.models.inventory import OnuStatus, PonPortAddress
from ponscan.snmp._util import decode_serial, format_mac, scaled, to_int

# ZXAN GPON MIB, base .1.3.6.1.4.1.3902.1012
OID_ZTE_ONU_PHASE_STATE = "1.3.6.1.4.1.3902.1012.3.28.1.1.2"
OID_ZTE_ONU_MAC = "1.3.6.1.4.1.3902.1012.3.28.1.1.3"
OID_ZTE_ONU_SERIAL = "1.3.6.1.4.1.3902.1012.3.28.1.1.5"
OID_ZTE_ONU_DISTANCE = "1.3.6.1.4.1.3902.1012.3.28.2.1.5"
OID_ZTE_ONU_TX_POWER = "1.3.6.1.4.1.3902.1012.3.50.12.1.1.9"
OID_ZTE_ONU_RX_POWER = "1.3.6.1.4.1.3902.1012.3.50.12.1.1.10"

ZTE_PHASE_WORKING = 3


def _zte_status(value: object) -> OnuStatus:
    return OnuStatus.ONLINE if int(value) == ZTE_PHASE_WORKING else OnuStatus.OFFLINE  # type: ignore[call-overload]


@register_dialect(Vendor.ZTE_GPON)
class ZteGponDialect(VendorDialect):
    """ZXAN CLI as found on C300/C320 chassis (rack 1, shelf 1)."""

    pagination_command = "terminal length 0"
    enable_command = "enable"

    card_command = "show card"
    onu_state_command = "show gpon onu state {port}"
    onu_detail_command = "show gpon onu detail-info {onu}"
    uncfg_command = "show gpon onu uncfg"

    port_template = "gpon-olt_1/{slot}/{port}"
    onu_template = "gpon-onu_1/{slot}/{port}:{onu_id}"

    error_markers = ("Invalid", "Unrecognized", "Error", "%Code")
    empty_markers = ("No related information",)

    snmp_fields = {
        "status": SnmpField(OID_ZTE_ONU_PHASE_STATE, _zte_status),
        "serial": SnmpField(OID_ZTE_ONU_SERIAL, decode_serial),
        "mac_address": SnmpField(OID_ZTE_ONU_MAC, format_mac),
        "signal_rx": SnmpField(OID_ZTE_ONU_RX_POWER, scaled(0.01)),
        "signal_tx": SnmpField(OID_ZTE_ONU_TX_POWER, scaled(0.01)),
        "distance": SnmpField(OID_ZTE_ONU_DISTANCE, to_int),
    }
    snmp_index_len = 1

    def decode_snmp_index(self, index: tuple[int, ...]) -> tuple[PonPortAddress, int]:
        # 32-bit ifIndex: shelf(8) slot(8) port(8) onu(8)
        if_index = index[-1]
        slot = (if_index >> 16) & 0xFF
        port = (if_index >> 8) & 0xFF
        onu_id = if_index & 0xFF
        return PonPortAddress(slot, port), onu_id
