"""Private value converters for SNMP varbinds."""

from __future__ import annotations

import re
from typing import Any, Callable

_HEX_PAIRS = re.compile(r"^[0-9A-Fa-f]{2}(?:[\s:\-][0-9A-Fa-f]{2})+$")


def octets(value: Any) -> bytes:
    """Return the raw bytes of an OctetString-like value."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if hasattr(value, "asOctets"):
        return bytes(value.asOctets())
    text = str(value).strip()
    if _HEX_PAIRS.match(text):
        return bytes(int(h, 16) for h in re.split(r"[\s:\-]", text))
    return text.encode("latin-1", errors="replace")


def to_int(value: Any) -> int:
    return int(value)


def scaled(factor: float) -> Callable[[Any], float]:
    """Converter for integer readings reported in fractions of a unit (e.g. 0.01 dBm)."""

    def _convert(value: Any) -> float:
        return round(int(value) * factor, 2)

    return _convert


def format_mac(value: Any) -> str | None:
    """Render a 6-byte MAC as ``AA:BB:CC:DD:EE:FF``."""
    raw = octets(value)
    if len(raw) == 6:
        return ":".join(f"{b:02X}" for b in raw)
    text = str(value).strip()
    m = re.fullmatch(r"([0-9A-Fa-f]{2})[:\-.]?([0-9A-Fa-f]{2})[:\-.]?([0-9A-Fa-f]{2})[:\-.]?"
                     r"([0-9A-Fa-f]{2})[:\-.]?([0-9A-Fa-f]{2})[:\-.]?([0-9A-Fa-f]{2})", text)
    if m:
        return ":".join(g.upper() for g in m.groups())
    return None


def decode_serial(value: Any) -> str:
    """Decode a GPON serial number.

    Serials are 4 ASCII vendor bytes followed by 4 binary bytes, rendered as
    e.g. ``ZTEGC8F12345``. Fully printable values are returned as text.
    """
    raw = octets(value)
    if len(raw) == 8 and raw[:4].isalpha() and not raw[4:].isalnum():
        return raw[:4].decode("ascii") + raw[4:].hex().upper()
    if raw and all(32 <= b < 127 for b in raw):
        return raw.decode("ascii").strip()
    return raw.hex().upper()
