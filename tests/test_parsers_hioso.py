"""Tests for the HIOSO EPON response parser."""

import pytest

from ponscan.exceptions import ParseError
from ponscan.models.inventory import OnuStatus, PonPortAddress
from samples import HIOSO_ONU_BARE, HIOSO_ONU_DETAIL

PORT_1_1 = PonPortAddress(1, 1)


class TestParseOnuDetail:
    def test_labels(self, hioso_parser):
        record = hioso_parser.parse_onu_detail(HIOSO_ONU_DETAIL, PORT_1_1, 7)

        assert record.name == "casa-7"
        assert record.onu_type == "HA7302CST"
        assert record.status == OnuStatus.ONLINE
        assert record.mac_address == "00:11:22:33:44:77"
        assert record.signal_rx == -21.3
        assert record.signal_tx == 2.1
        assert record.distance == 850

    def test_mac_is_not_a_serial(self, hioso_parser):
        record = hioso_parser.parse_onu_detail(HIOSO_ONU_DETAIL, PORT_1_1, 7)
        assert record.serial is None

    def test_labeled_serial(self, hioso_parser):
        record = hioso_parser.parse_onu_detail("SN : HSGQ00112233\nStatus : online\n", PORT_1_1, 1)
        assert record.serial == "HSGQ00112233"
        assert record.mac_address is None

    def test_unlabeled_mac_line(self, hioso_parser):
        record = hioso_parser.parse_onu_detail("Status: offline\n00-11-22-33-44-88\n", PORT_1_1, 3)

        assert record.mac_address == "00:11:22:33:44:88"
        assert record.status == OnuStatus.OFFLINE

    def test_unlabeled_state_word(self, hioso_parser):
        record = hioso_parser.parse_onu_detail(HIOSO_ONU_BARE, PORT_1_1, 2)

        # dotted notation is normalized
        assert record.mac_address == "00:11:22:33:44:88"
        assert record.status == OnuStatus.OFFLINE

    def test_state_word_in_other_label_ignored(self, hioso_parser):
        record = hioso_parser.parse_onu_detail("Admin state : up\nMAC : 00:11:22:33:44:99\n", PORT_1_1, 4)

        assert record.status is None
        assert record.mac_address == "00:11:22:33:44:99"

    def test_unknown_labels_only(self, hioso_parser):
        with pytest.raises(ParseError):
            hioso_parser.parse_onu_detail("Uptime : 3 days\nFirmware : V1.2\n", PORT_1_1, 5)

    def test_blank(self, hioso_parser):
        record = hioso_parser.parse_onu_detail("", PORT_1_1, 1)
        assert record.mac_address is None and record.status is None

    def test_render_round_trip(self, hioso_parser):
        first = hioso_parser.parse_onu_detail(HIOSO_ONU_DETAIL, PORT_1_1, 7)
        second = hioso_parser.parse_onu_detail(hioso_parser.render_onu_detail(first), PORT_1_1, 7)

        assert second.model_dump() == first.model_dump()


class TestNoListings:
    """HIOSO firmware has no card, state or unconfigured listing."""

    def test_listings_not_implemented(self, hioso_parser):
        with pytest.raises(NotImplementedError):
            hioso_parser.parse_cards("")
        with pytest.raises(NotImplementedError):
            hioso_parser.parse_onu_states("", PORT_1_1)
        with pytest.raises(NotImplementedError):
            hioso_parser.parse_uncfg("")
