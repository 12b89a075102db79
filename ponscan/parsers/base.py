"""Abstract response parser, shared text helpers and the parser registry."""

from __future__ import annotations

import re
from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ClassVar

from ponscan.exceptions import ParseError
from ponscan.models.device import Vendor
from ponscan.models.inventory import CardStatus, OnuRecord, OnuStatus, PonPortAddress, UnconfiguredOnu

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LABEL_LINE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9 ./+()_\-]*?)\s*:\s*(.*?)\s*$")
_TABLE_RULE = re.compile(r"^\s*-{5,}\s*$")
_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")
_MAC = re.compile(r"\b([0-9A-Fa-f]{2})[:\-]([0-9A-Fa-f]{2})[:\-]([0-9A-Fa-f]{2})[:\-]"
                  r"([0-9A-Fa-f]{2})[:\-]([0-9A-Fa-f]{2})[:\-]([0-9A-Fa-f]{2})\b")
_MAC_DOTTED = re.compile(r"\b([0-9A-Fa-f]{4})\.([0-9A-Fa-f]{4})\.([0-9A-Fa-f]{4})\b")
_UNSET_VALUES = {"", "n/a", "na", "none", "-", "--"}

_STATUS_WORDS: dict[str, OnuStatus] = {
    "working": OnuStatus.ONLINE,
    "online": OnuStatus.ONLINE,
    "ready": OnuStatus.ONLINE,
    "up": OnuStatus.ONLINE,
    "registered": OnuStatus.ONLINE,
    "active": OnuStatus.ONLINE,
    "los": OnuStatus.OFFLINE,
    "offline": OnuStatus.OFFLINE,
    "dyinggasp": OnuStatus.OFFLINE,
    "lost": OnuStatus.OFFLINE,
    "down": OnuStatus.OFFLINE,
    "syncmib": OnuStatus.SILENT,
    "logging": OnuStatus.SILENT,
    "authfailed": OnuStatus.SILENT,
    "silent": OnuStatus.SILENT,
    "unconfigured": OnuStatus.UNCONFIGURED,
    "uncfg": OnuStatus.UNCONFIGURED,
}


def normalize_status(text: str | None) -> OnuStatus | None:
    """Map a vendor phase/state word to ``OnuStatus``; unknown words read as offline."""
    if not text:
        return None
    word = re.sub(r"[\s_\-]", "", text.strip().lower())
    return _STATUS_WORDS.get(word, OnuStatus.OFFLINE)


def is_status_word(text: str) -> bool:
    return re.sub(r"[\s_\-]", "", text.strip().lower()) in _STATUS_WORDS


def parse_text(value: str) -> str | None:
    value = value.strip()
    return None if value.lower() in _UNSET_VALUES else value


def parse_int(value: str) -> int | None:
    m = _NUMBER.search(value)
    return int(float(m.group(0))) if m else None


def parse_float(value: str) -> float | None:
    m = _NUMBER.search(value)
    return float(m.group(0)) if m else None


def parse_timestamp(value: str) -> datetime | None:
    value = value.strip()
    if not value or value.startswith("0000"):
        return None
    try:
        return datetime.strptime(value[:19], TIMESTAMP_FORMAT)
    except ValueError:
        return None


def parse_mac(value: str) -> str | None:
    """Find a MAC in free text and render it ``AA:BB:CC:DD:EE:FF``."""
    m = _MAC.search(value)
    if m:
        return ":".join(g.upper() for g in m.groups())
    m = _MAC_DOTTED.search(value)
    if m:
        digits = "".join(m.groups()).upper()
        return ":".join(digits[i : i + 2] for i in range(0, 12, 2))
    return None


def _render_text(value: Any) -> str:
    return str(value)


def _render_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def normalize_label(label: str) -> str:
    return re.sub(r"\s+", " ", label.strip().lower())


@dataclass(frozen=True)
class DetailLabel:
    """One recognized ``Label : value`` line of an ONU detail block."""

    field: str
    label: str
    aliases: tuple[str, ...] = ()
    parse: Callable[[str], Any] = parse_text
    render: Callable[[Any], str] = _render_text
    keys: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        names = (self.label, *self.aliases)
        object.__setattr__(self, "keys", frozenset(normalize_label(n) for n in names))


def timestamp_label(field_name: str, label: str, *aliases: str) -> DetailLabel:
    return DetailLabel(field_name, label, aliases, parse_timestamp, _render_timestamp)


class BaseResponseParser(ABC):
    """Vendor-specific text-to-model extraction.

    Every routine accepts blank input and returns an empty result. ``ParseError``
    is raised only for text that looks structured but matches no known row.
    """

    vendor: ClassVar[Vendor]
    detail_labels: ClassVar[tuple[DetailLabel, ...]] = ()

    def parse_cards(self, text: str) -> list[CardStatus]:
        """Parse the card listing into one CardStatus per row."""
        raise NotImplementedError(f"{type(self).__name__} has no card listing")

    def parse_onu_states(self, text: str, port: PonPortAddress) -> list[OnuRecord]:
        """Parse the ONU state listing of one PON port."""
        raise NotImplementedError(f"{type(self).__name__} has no ONU state listing")

    def parse_uncfg(self, text: str) -> list[UnconfiguredOnu]:
        """Parse the listing of ONUs waiting for registration."""
        raise NotImplementedError(f"{type(self).__name__} has no unconfigured ONU listing")

    def parse_onu_detail(self, text: str, port: PonPortAddress, onu_id: int) -> OnuRecord:
        """Build one OnuRecord from ``Label : value`` lines.

        Unknown labels are ignored; missing ones leave the field unset.
        """
        values, label_lines = self._collect_labels(text)
        extra = self._detail_extras(text, values)
        if label_lines and not values and not extra:
            raise ParseError(f"No recognized labels in detail for {port}:{onu_id}", text)
        values.update({k: v for k, v in extra.items() if k not in values})
        return self._build_detail_record(port, onu_id, values)

    def render_onu_detail(self, record: OnuRecord) -> str:
        """Serialize the recognized fields of ``record`` back to ``Label: value`` lines."""
        lines = []
        for entry in self.detail_labels:
            value = getattr(record, entry.field)
            if value is None:
                continue
            lines.append(f"{entry.label}: {entry.render(value)}")
        return "\n".join(lines)

    def _collect_labels(self, text: str) -> tuple[dict[str, Any], int]:
        index = {key: entry for entry in self.detail_labels for key in entry.keys}
        values: dict[str, Any] = {}
        label_lines = 0
        for line in text.splitlines():
            m = _LABEL_LINE.match(line)
            if not m:
                continue
            label_lines += 1
            entry = index.get(normalize_label(m.group(1)))
            if entry is None or entry.field in values:
                continue
            value = entry.parse(m.group(2))
            if value is not None:
                values[entry.field] = value
        return values, label_lines

    def _detail_extras(self, text: str, values: dict[str, Any]) -> dict[str, Any]:
        """Hook for vendor blocks that are not label lines (e.g. history tables)."""
        return {}

    def _build_detail_record(self, port: PonPortAddress, onu_id: int, values: dict[str, Any]) -> OnuRecord:
        if "status" not in values:
            status = normalize_status(values.get("phase_state"))
            if status is not None:
                values["status"] = status
        return OnuRecord(port=port, onu_id=onu_id, **values)

    @staticmethod
    def _body_lines(text: str) -> list[str]:
        """Non-blank lines, with table rules and headers before a rule removed."""
        lines = [line for line in text.splitlines() if line.strip()]
        for i, line in enumerate(lines):
            if _TABLE_RULE.match(line):
                return [row for row in lines[i + 1 :] if not _TABLE_RULE.match(row)]
        return lines

    @staticmethod
    def _has_table(text: str) -> bool:
        return any(_TABLE_RULE.match(line) for line in text.splitlines())


_PARSER_REGISTRY: dict[Vendor, type[BaseResponseParser]] = {}


def register_parser(vendor: Vendor) -> Callable[[type[BaseResponseParser]], type[BaseResponseParser]]:
    """Decorator to register a vendor response parser."""

    def decorator(cls: type[BaseResponseParser]) -> type[BaseResponseParser]:
        cls.vendor = vendor
        _PARSER_REGISTRY[vendor] = cls
        return cls

    return decorator


def get_parser(vendor: Vendor | str) -> BaseResponseParser:
    """Return the response parser for a vendor.

    Raises:
        ValueError: If no parser is registered for the vendor.
    """
    key = vendor if isinstance(vendor, Vendor) else Vendor.parse(vendor)
    if key not in _PARSER_REGISTRY:
        available = ", ".join(sorted(v.value for v in _PARSER_REGISTRY))
        raise ValueError(f"No parser for vendor '{key.value}'. Available: {available}")
    return _PARSER_REGISTRY[key]()
