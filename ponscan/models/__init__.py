"""Data models for OLT discovery."""

from ponscan.models.device import Device, ScanOptions, Vendor
from ponscan.models.inventory import (
    CardStatus,
    Diagnostic,
    DiagnosticLevel,
    OnuRecord,
    OnuStatus,
    PonPortAddress,
    ScanResult,
    UnconfiguredOnu,
)

__all__ = [
    "Vendor",
    "Device",
    "ScanOptions",
    "PonPortAddress",
    "OnuStatus",
    "OnuRecord",
    "CardStatus",
    "UnconfiguredOnu",
    "DiagnosticLevel",
    "Diagnostic",
    "ScanResult",
]
