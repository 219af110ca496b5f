"""
Exception types raised by markovnet.
"""


class MarkovNetError(Exception):
    """Base class for all markovnet errors."""


class FileAccessError(MarkovNetError, OSError):
    """Input file is missing or cannot be read."""


class MalformedInputError(MarkovNetError, ValueError):
    """Network or evidence text does not follow the expected format."""


class InvalidOperationError(MarkovNetError, ValueError):
    """Degenerate call into the factor algebra."""
