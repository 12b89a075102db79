"""Exception hierarchy for OLT discovery."""


class PonScanError(Exception):
    """Base exception for all discovery errors."""


class ConnectionError(PonScanError):  # noqa: A001
    """Socket-level failure: refused, timed out or dropped connection."""


class AuthenticationError(PonScanError):
    """Credentials rejected or login prompts never matched."""


class DeviceUnreachable(PonScanError):
    """Consecutive command timeouts in the bootstrap window of a scan."""


class SessionError(PonScanError):
    """Session used outside the ``Authenticated`` state."""


class ScanCancelled(PonScanError):
    """Scan aborted by a caller-side deadline."""


class CommandTimeout(PonScanError):
    """No shell prompt matched within the command deadline."""

    def __init__(self, message: str, command: str = "", timeout: float | None = None):
        self.command = command
        self.timeout = timeout
        super().__init__(message)


class CommandError(PonScanError):
    """Device echoed a recognized error marker."""

    def __init__(self, message: str, command: str = "", output: str = ""):
        self.command = command
        self.output = output
        super().__init__(message)


class ParseError(PonScanError):
    """Response looks structured but matches no known schema."""

    def __init__(self, message: str, text: str = ""):
        self.text = text[:200]
        super().__init__(message)


class SnmpError(PonScanError):
    """SNMP walk failed at the transport or community level."""

    def __init__(self, message: str, oid: str | None = None):
        self.oid = oid
        super().__init__(message)


# Errors that abort a device scan instead of degrading to diagnostics.
FATAL_ERRORS: tuple[type[PonScanError], ...] = (
    ConnectionError,
    AuthenticationError,
    DeviceUnreachable,
    ScanCancelled,
)
