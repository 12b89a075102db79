"""Vendor dialect tables.

Importing this package triggers dialect registration via @register_dialect.
"""

from ponscan.dialects.base import SnmpField, VendorDialect
from ponscan.dialects.factory import get_dialect, list_vendors, register_dialect

import ponscan.dialects.hioso  # noqa: F401, E402
import ponscan.dialects.zte  # noqa: F401, E402

__all__ = [
    "SnmpField",
    "VendorDialect",
    "get_dialect",
    "list_vendors",
    "register_dialect",
]
