# csvpager/parsing/errors.py
from __future__ import annotations


class CsvPagerError(Exception):
    """Base class for every error raised by csvpager."""


class SourceNotFound(CsvPagerError):
    """The path does not exist or cannot be opened."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"Source not found: {path}"
        super().__init__(f"{msg} ({reason})" if reason else msg)


class SourceUnreadable(CsvPagerError):
    """A chunk read failed after the source was opened."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"Failed to read from {path}"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class DecodeError(CsvPagerError):
    """Bytes are not valid under the configured text encoding."""

    def __init__(self, encoding: str, offset: int, reason: str = ""):
        self.encoding = encoding
        self.offset = offset
        self.reason = reason
        super().__init__(f"Cannot decode data as {encoding} near byte {offset}: {reason}")


class LoadError(CsvPagerError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to load file: {reason}")


class ConfigError(CsvPagerError, ValueError):
    pass
