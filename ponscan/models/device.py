"""Device descriptor and scan tuning models."""

from __future__ import annotations

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator


class Vendor(str, Enum):
    """OLT vendor / PON technology dialect."""

    ZTE_GPON = "ZTE-GPON"
    HIOSO_EPON = "HIOSO-EPON"

    @classmethod
    def parse(cls, value: str) -> Vendor:
        """Accept loose vendor spellings such as ``zte``, ``zte_gpon`` or ``HIOSO``."""
        norm = value.strip().upper().replace("_", "-")
        for member in cls:
            if norm == member.value or norm == member.name.replace("_", "-"):
                return member
        for member in cls:
            if member.value.split("-")[0] == norm:
                return member
        available = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown vendor '{value}'. Available: {available}")


class Device(BaseModel):
    """An OLT as handed over by the device registry.

    Immutable for the duration of a scan. Secrets are ``SecretStr`` so they
    never leak into logs or JSON dumps.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    vendor: Vendor
    host: str
    telnet_port: int = 23
    telnet_username: str = ""
    telnet_password: SecretStr = SecretStr("")
    enable_password: SecretStr | None = None
    snmp_port: int = 161
    snmp_community: SecretStr | None = None
    total_pon_slots: int = Field(default=1, ge=1)
    ports_per_slot: int = Field(default=16, ge=1)
    telnet_enabled: bool = True
    snmp_enabled: bool = False

    @model_validator(mode="after")
    def _check_transports(self) -> Self:
        if not (self.telnet_enabled or self.snmp_enabled):
            raise ValueError(f"Device {self.name}: at least one of telnet/snmp must be enabled")
        if self.snmp_enabled and self.snmp_community is None:
            raise ValueError(f"Device {self.name}: snmp_enabled requires snmp_community")
        return self

    @property
    def port_count(self) -> int:
        return self.total_pon_slots * self.ports_per_slot


class ScanOptions(BaseModel):
    """Timeouts and feature switches for one scan."""

    model_config = ConfigDict(frozen=True)

    connect_timeout: float = 15.0
    command_timeout: float = 10.0
    walk_timeout: float = 15.0
    bootstrap_window: int = Field(default=3, ge=1)
    retry_timeouts: int = Field(default=1, ge=0, le=1)
    fetch_details: bool = True
    fetch_uncfg: bool = True
    deadline: float | None = None
