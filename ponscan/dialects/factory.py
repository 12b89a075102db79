"""Vendor registry and factory for dialect lookup."""

from __future__ import annotations

from typing import Callable

from ponscan.dialects.base import VendorDialect
from ponscan.models.device import Vendor

_DIALECT_REGISTRY: dict[Vendor, type[VendorDialect]] = {}


def register_dialect(vendor: Vendor) -> Callable[[type[VendorDialect]], type[VendorDialect]]:
    """Decorator to register a vendor dialect class.

    Usage::

        @register_dialect(Vendor.ZTE_GPON)
        class ZteGponDialect(VendorDialect):
            ...
    """

    def decorator(cls: type[VendorDialect]) -> type[VendorDialect]:
        cls.vendor = vendor
        _DIALECT_REGISTRY[vendor] = cls
        return cls

    return decorator


def get_dialect(vendor: Vendor | str) -> VendorDialect:
    """Return the dialect for a vendor.

    Args:
        vendor: ``Vendor`` member or a loose name such as ``"zte"``.

    Raises:
        ValueError: If the vendor is unknown or has no registered dialect.
    """
    key = vendor if isinstance(vendor, Vendor) else Vendor.parse(vendor)
    if key not in _DIALECT_REGISTRY:
        available = ", ".join(list_vendors())
        raise ValueError(f"No dialect for vendor '{key.value}'. Available: {available}")
    return _DIALECT_REGISTRY[key]()


def list_vendors() -> list[str]:
    """Return a sorted list of vendors with a registered dialect."""
    return sorted(v.value for v in _DIALECT_REGISTRY)
