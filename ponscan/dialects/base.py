"""Abstract vendor dialect: command strings, prompts, addressing and OID map."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, ClassVar

from ponscan.models.device import Vendor
from ponscan.models.inventory import PonPortAddress


@dataclass(frozen=True)
class SnmpField:
    """One walked OnuRecord field: the column OID and its value converter."""

    oid: str
    convert: Callable[[Any], Any]


class VendorDialect(ABC):
    """Per-vendor table driving session, executor, enumerator and poller.

    Subclasses only fill in class attributes and the SNMP index decoder;
    new vendors add a table, not control flow.
    """

    vendor: ClassVar[Vendor]

    # a colon is required so an echoed username such as "user" is not read as a prompt
    login_prompt: ClassVar[re.Pattern[str]] = re.compile(r"([Ll]ogin|[Uu]sername|[Uu]ser)\s*:\s*$")
    password_prompt: ClassVar[re.Pattern[str]] = re.compile(r"[Pp]assword\s*:\s*$")
    shell_prompt: ClassVar[re.Pattern[str]] = re.compile(r"(?:^|[\r\n])[\w\-.]+(?:\([\w\-./ ]+\))?[#>]\s*$")
    login_failed: ClassVar[re.Pattern[str]] = re.compile(
        r"(bad password|login incorrect|authentication fail|access denied|invalid password)", re.IGNORECASE
    )
    line_terminator: ClassVar[str] = "\n"

    pagination_command: ClassVar[str | None] = "terminal length 0"
    enable_command: ClassVar[str | None] = None
    post_login_commands: ClassVar[tuple[str, ...]] = ()

    card_command: ClassVar[str | None] = None
    onu_state_command: ClassVar[str | None] = None
    onu_detail_command: ClassVar[str | None] = None
    uncfg_command: ClassVar[str | None] = None

    # firmware without a per-port listing: enter the port view and ask for
    # ONU ids one at a time
    port_view_command: ClassVar[str | None] = None
    port_exit_command: ClassVar[str | None] = None
    onu_lookup_command: ClassVar[str | None] = None
    max_onu_id: ClassVar[int] = 128

    port_template: ClassVar[str] = "{slot}/{port}"
    onu_template: ClassVar[str] = "{slot}/{port}:{onu_id}"

    error_markers: ClassVar[tuple[str, ...]] = ("Invalid", "Unrecognized", "Error")
    # responses that carry an error marker but only mean "nothing here"
    empty_markers: ClassVar[tuple[str, ...]] = ()

    snmp_fields: ClassVar[dict[str, SnmpField]] = {}
    snmp_index_len: ClassVar[int] = 1

    @property
    def name(self) -> str:
        return self.vendor.value

    @property
    def has_cli_inventory(self) -> bool:
        """True when ONU state can be enumerated over the CLI."""
        return self.onu_state_command is not None or self.looks_up_onus

    @property
    def looks_up_onus(self) -> bool:
        """True when ONUs are found by per-id lookups inside a port view."""
        return (
            self.onu_state_command is None
            and self.port_view_command is not None
            and self.onu_lookup_command is not None
        )

    @property
    def has_snmp_inventory(self) -> bool:
        return "status" in self.snmp_fields

    def port_id(self, address: PonPortAddress) -> str:
        return self.port_template.format(slot=address.slot, port=address.port)

    def onu_ref(self, address: PonPortAddress, onu_id: int) -> str:
        return self.onu_template.format(slot=address.slot, port=address.port, onu_id=onu_id)

    def onu_state_cmd(self, address: PonPortAddress) -> str:
        if self.onu_state_command is None:
            raise NotImplementedError(f"{self.name} has no CLI ONU state command")
        return self.onu_state_command.format(port=self.port_id(address))

    def onu_detail_cmd(self, address: PonPortAddress, onu_id: int) -> str:
        if self.onu_detail_command is None:
            raise NotImplementedError(f"{self.name} has no CLI ONU detail command")
        return self.onu_detail_command.format(onu=self.onu_ref(address, onu_id))

    def port_view_cmd(self, address: PonPortAddress) -> str:
        if self.port_view_command is None:
            raise NotImplementedError(f"{self.name} has no CLI port view command")
        return self.port_view_command.format(port=self.port_id(address))

    def onu_lookup_cmd(self, onu_id: int) -> str:
        if self.onu_lookup_command is None:
            raise NotImplementedError(f"{self.name} has no CLI ONU lookup command")
        return self.onu_lookup_command.format(onu_id=onu_id)

    def is_error_output(self, text: str) -> bool:
        if any(marker in text for marker in self.empty_markers):
            return False
        return any(marker in text for marker in self.error_markers)

    @abstractmethod
    def decode_snmp_index(self, index: tuple[int, ...]) -> tuple[PonPortAddress, int]:
        """Map the trailing OID components of a varbind to (port, onu_id)."""
