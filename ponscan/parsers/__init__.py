"""Vendor response parsers."""

from ponscan.parsers.base import BaseResponseParser, get_parser, normalize_status, register_parser

# Import vendor modules to trigger @register_parser decorators
import ponscan.parsers.hioso  # noqa: F401, E402
import ponscan.parsers.zte  # noqa: F401, E402

__all__ = ["BaseResponseParser", "get_parser", "normalize_status", "register_parser"]
