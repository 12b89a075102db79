"""Inventory data models produced by a scan."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ponscan.exceptions import PonScanError
    from ponscan.models.device import Device


@dataclass(frozen=True, order=True)
class PonPortAddress:
    """1-indexed (slot, port) pair addressing one PON interface."""

    slot: int
    port: int

    def __post_init__(self) -> None:
        if self.slot < 1 or self.port < 1:
            raise ValueError(f"PON address must be 1-indexed, got {self.slot}/{self.port}")

    def __str__(self) -> str:
        return f"{self.slot}/{self.port}"

    @classmethod
    def parse(cls, text: str) -> PonPortAddress:
        """Parse ``"<slot>/<port>"``."""
        slot, _, port = text.strip().partition("/")
        return cls(int(slot), int(port))

    @classmethod
    def iter_device(cls, device: Device) -> Iterator[PonPortAddress]:
        """Yield every address of a device, slot-major then port-minor."""
        for slot in range(1, device.total_pon_slots + 1):
            for port in range(1, device.ports_per_slot + 1):
                yield cls(slot, port)


class OnuStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    SILENT = "silent"
    UNCONFIGURED = "unconfigured"


class OnuRecord(BaseModel):
    """One ONU as seen on a PON port."""

    port: PonPortAddress
    onu_id: int = Field(ge=1)
    serial: Optional[str] = None
    mac_address: Optional[str] = None
    # unset until a listing, detail block or status walk reports it
    status: Optional[OnuStatus] = None
    signal_rx: Optional[float] = None
    signal_tx: Optional[float] = None
    distance: Optional[int] = None
    vlan_id: Optional[int] = None
    bandwidth_profile: Optional[str] = None
    registration_date: Optional[datetime] = None
    last_online: Optional[datetime] = None

    name: Optional[str] = None
    onu_type: Optional[str] = None
    admin_state: Optional[str] = None
    phase_state: Optional[str] = None
    config_state: Optional[str] = None
    auth_mode: Optional[str] = None
    line_profile: Optional[str] = None
    service_profile: Optional[str] = None
    description: Optional[str] = None
    online_duration: Optional[str] = None
    last_down_cause: Optional[str] = None

    source: str = "cli"

    @property
    def key(self) -> tuple[PonPortAddress, int]:
        return (self.port, self.onu_id)

    def merge(self, other: OnuRecord, source: str | None = None) -> OnuRecord:
        """Return a copy with fields unset here filled from ``other``.

        Fields already set on ``self`` win; ``port``, ``onu_id`` and ``source``
        are never taken from ``other``.
        """
        update: dict[str, object] = {}
        for field_name in type(self).model_fields:
            if field_name in ("port", "onu_id", "source"):
                continue
            mine = getattr(self, field_name)
            theirs = getattr(other, field_name)
            if mine is None and theirs is not None:
                update[field_name] = theirs
        if source is not None:
            update["source"] = source
        return self.model_copy(update=update)


class CardStatus(BaseModel):
    """One chassis card row of the card listing."""

    slot: int
    card_type: str
    status: str
    rack: Optional[int] = None
    shelf: Optional[int] = None
    port_count: Optional[int] = None
    hard_version: Optional[str] = None
    soft_version: Optional[str] = None


class UnconfiguredOnu(BaseModel):
    """An ONU seen on the fibre but not yet registered."""

    serial: str
    port_hint: str = ""
    onu_type: str = ""


class DiagnosticLevel(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    """A non-fatal problem attached to a port or OID."""

    level: DiagnosticLevel = DiagnosticLevel.WARNING
    kind: str
    message: str
    port: Optional[PonPortAddress] = None
    oid: Optional[str] = None

    @classmethod
    def from_exception(
        cls,
        exc: PonScanError,
        port: PonPortAddress | None = None,
        oid: str | None = None,
        level: DiagnosticLevel = DiagnosticLevel.WARNING,
    ) -> Diagnostic:
        return cls(
            level=level,
            kind=type(exc).__name__,
            message=str(exc),
            port=port,
            oid=oid if oid is not None else getattr(exc, "oid", None),
        )

    def __str__(self) -> str:
        where = f" [{self.port}]" if self.port else f" [{self.oid}]" if self.oid else ""
        return f"{self.level.value}:{self.kind}{where}: {self.message}"


class ScanResult(BaseModel):
    """Normalized inventory snapshot of one device."""

    device: str
    vendor: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    cards: list[CardStatus] = Field(default_factory=list)
    onus: list[OnuRecord] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def onu_count(self) -> int:
        return len(self.onus)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.WARNING]
