"""Read-only OLT/PON discovery over Telnet CLI and SNMP.

Enumerates chassis cards, PON ports and attached ONUs on ZTE GPON and
HIOSO EPON OLTs and returns a normalized inventory.
"""

__version__ = "0.0.1"

import os
import sys
from typing import Any, Callable, Dict

from loguru import logger as glogger

glogger.disable(__name__)


def _loguru_skiplog_filter(record: dict) -> bool:  # type: ignore[type-arg]
    """Filter function to hide records with ``extra['skiplog']`` set."""
    return not record.get("extra", {}).get("skiplog", False)


def configure_logging(
    loguru_filter: Callable[[Dict[str, Any]], bool] = _loguru_skiplog_filter,
) -> None:
    """Configure a default ``loguru`` sink and enable the package's log output."""
    os.environ["LOGURU_LEVEL"] = os.getenv("LOGURU_LEVEL", "DEBUG")
    glogger.remove()
    logger_fmt: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    glogger.add(sys.stderr, level=os.getenv("LOGURU_LEVEL"), format=logger_fmt, filter=loguru_filter)  # type: ignore[arg-type]
    glogger.configure(extra={"skiplog": False})
    glogger.enable(__name__)


from ponscan.dialects import get_dialect, list_vendors  # noqa: E402
from ponscan.exceptions import (  # noqa: E402
    FATAL_ERRORS,
    AuthenticationError,
    CommandError,
    CommandTimeout,
    ConnectionError,
    DeviceUnreachable,
    ParseError,
    PonScanError,
    ScanCancelled,
    SessionError,
    SnmpError,
)
from ponscan.models import Device, OnuRecord, OnuStatus, PonPortAddress, ScanOptions, ScanResult, Vendor  # noqa: E402
from ponscan.orchestrator import DiscoveryOrchestrator  # noqa: E402
from ponscan.parsers import get_parser  # noqa: E402

__all__ = [
    "glogger",
    "configure_logging",
    "get_dialect",
    "get_parser",
    "list_vendors",
    "DiscoveryOrchestrator",
    "Device",
    "OnuRecord",
    "OnuStatus",
    "PonPortAddress",
    "ScanOptions",
    "ScanResult",
    "Vendor",
    "FATAL_ERRORS",
    "PonScanError",
    "ConnectionError",
    "AuthenticationError",
    "DeviceUnreachable",
    "CommandTimeout",
    "CommandError",
    "ParseError",
    "SnmpError",
    "SessionError",
    "ScanCancelled",
]
