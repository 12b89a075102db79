"""Tests for the vendor dialect registry and dialect tables."""

from __future__ import annotations

import pytest

from ponscan.dialects import get_dialect, list_vendors
from ponscan.dialects.hioso import HiosoEponDialect
from ponscan.dialects.zte import ZteGponDialect
from ponscan.models.device import Vendor
from ponscan.models.inventory import OnuStatus, PonPortAddress


class TestRegistry:
    """Test dialect lookup by vendor."""

    def test_list_vendors_sorted(self):
        vendors = list_vendors()
        assert vendors == sorted(vendors)
        assert vendors == ["HIOSO-EPON", "ZTE-GPON"]

    def test_lookup_by_member_and_loose_name(self):
        assert isinstance(get_dialect(Vendor.ZTE_GPON), ZteGponDialect)
        assert isinstance(get_dialect("zte"), ZteGponDialect)
        assert isinstance(get_dialect("hioso_epon"), HiosoEponDialect)

    def test_unknown_vendor(self):
        with pytest.raises(ValueError) as exc_info:
            get_dialect("huawei")
        assert "Available" in str(exc_info.value)

    def test_fresh_instance_per_lookup(self):
        assert get_dialect(Vendor.ZTE_GPON) is not get_dialect(Vendor.ZTE_GPON)

    def test_name(self):
        assert get_dialect(Vendor.HIOSO_EPON).name == "HIOSO-EPON"


class TestZteDialect:
    """Test ZTE command rendering and SNMP index decoding."""

    def test_commands(self, zte_dialect):
        address = PonPortAddress(2, 16)
        assert zte_dialect.port_id(address) == "gpon-olt_1/2/16"
        assert zte_dialect.onu_state_cmd(address) == "show gpon onu state gpon-olt_1/2/16"
        assert zte_dialect.onu_detail_cmd(address, 5) == "show gpon onu detail-info gpon-onu_1/2/16:5"

    def test_inventory_sources(self, zte_dialect):
        assert zte_dialect.has_cli_inventory
        assert zte_dialect.has_snmp_inventory

    def test_decode_snmp_index(self, zte_dialect):
        if_index = (1 << 24) | (3 << 16) | (7 << 8) | 12
        assert zte_dialect.decode_snmp_index((if_index,)) == (PonPortAddress(3, 7), 12)

    def test_decode_zero_port_rejected(self, zte_dialect):
        with pytest.raises(ValueError):
            zte_dialect.decode_snmp_index(((1 << 24) | 5,))

    def test_error_output(self, zte_dialect):
        assert zte_dialect.is_error_output("%Error 20200: Invalid input detected at '^' marker.")
        assert zte_dialect.is_error_output("%Code 30003: The slot is not present.")
        assert not zte_dialect.is_error_output("%Code 32310-GPONSRV : No related information to show.")
        assert not zte_dialect.is_error_output("1/1/3:1 enable enable working")

    def test_phase_state_converter(self, zte_dialect):
        convert = zte_dialect.snmp_fields["status"].convert
        assert convert(3) == OnuStatus.ONLINE
        assert convert(1) == OnuStatus.OFFLINE
        assert convert(4) == OnuStatus.OFFLINE


class TestHiosoDialect:
    """Test HIOSO tables: per-id ONU lookups behind an EPON shell view."""

    def test_cli_inventory_by_lookup(self):
        dialect = get_dialect(Vendor.HIOSO_EPON)
        assert dialect.has_cli_inventory
        assert dialect.looks_up_onus
        assert dialect.has_snmp_inventory
        assert dialect.post_login_commands == ("configure terminal", "epon")
        assert dialect.port_view_cmd(PonPortAddress(2, 3)) == "pon2/3"
        assert dialect.onu_lookup_cmd(17) == "show onu 17"
        assert dialect.max_onu_id == 128
        with pytest.raises(NotImplementedError):
            dialect.onu_state_cmd(PonPortAddress(1, 1))

    def test_lookup_misses_are_errors(self):
        dialect = get_dialect(Vendor.HIOSO_EPON)
        assert dialect.is_error_output("% onu 5 not found")
        assert dialect.is_error_output("invalid onu id")
        assert not dialect.is_error_output("MAC address : 00:11:22:33:44:77")

    def test_zte_does_not_look_up(self, zte_dialect):
        assert not zte_dialect.looks_up_onus

    def test_decode_snmp_index(self):
        dialect = get_dialect(Vendor.HIOSO_EPON)
        assert dialect.decode_snmp_index(((1 << 16) | (2 << 8) | 7,)) == (PonPortAddress(1, 2), 7)
        assert dialect.decode_snmp_index((4,)) == (PonPortAddress(1, 1), 4)

    def test_status_converter(self):
        convert = get_dialect(Vendor.HIOSO_EPON).snmp_fields["status"].convert
        assert convert(1) == OnuStatus.ONLINE
        assert convert("2") == OnuStatus.OFFLINE
