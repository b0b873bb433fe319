"""Exception hierarchy for wintidy.

Only configuration errors abort a module. Collection and match errors are
handled locally (the offending source or pattern is skipped), and per-item
execution failures are recorded as results rather than raised.
"""


class WintidyError(Exception):
    """Base exception for all wintidy errors."""


class ConfigurationError(WintidyError):
    """Raised when a baseline or configuration file cannot be used."""


class BaselineNotFoundError(ConfigurationError):
    """Raised when a baseline file does not exist."""


class BaselineParseError(ConfigurationError):
    """Raised when a baseline file is not valid JSON or fails validation."""


class ConfigParseError(ConfigurationError):
    """Raised when config.toml cannot be parsed or validated."""


class CollectionError(WintidyError):
    """Raised when a source adapter cannot enumerate its items."""


class MatchError(WintidyError):
    """Raised for a malformed baseline pattern."""


class DiffFileError(WintidyError):
    """Raised when a diff or result artifact cannot be read or written."""
