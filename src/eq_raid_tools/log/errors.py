"""
Exceptions raised by the EverQuest log engine.

Line-level problems (unrecognized lines, unparseable timestamps, malformed
roster entries) are never raised; they are dropped by the scanner.
"""


class RaidLogError(Exception):
    """Base class for all log engine errors."""


class LogFileError(RaidLogError, OSError):
    """The log file could not be opened or read."""

    def __init__(self, file_path: str, cause: Exception):
        super().__init__(f"Cannot read log file {file_path}: {cause}")
        self.file_path = file_path
        self.cause = cause


class InvalidTimezoneError(RaidLogError, ValueError):
    """The timezone is not a known IANA identifier."""

    def __init__(self, timezone: str):
        super().__init__(
            f"Invalid timezone: '{timezone}'. Use an IANA timezone name, "
            f"e.g. America/Phoenix, America/Chicago"
        )
        self.timezone = timezone
