from __future__ import annotations

from typing import Optional


class RgssadError(Exception):
    """Base class for rgssad-specific errors."""


class InvalidFormat(RgssadError):
    pass


class DecodeError(RgssadError):
    """A directory record could not be decoded.

    ``offset`` is the archive position of the record start.
    """

    def __init__(self, message: str, *, offset: int, entry_name: Optional[str] = None):
        self.offset = offset
        self.entry_name = entry_name
        where = f" (entry {entry_name!r})" if entry_name else ""
        super().__init__(f"{message} at offset 0x{offset:08X}{where}")


class ShortReadError(RgssadError, OSError):
    """Entry content ended before its recorded length."""

    def __init__(self, entry_name: str, offset: int, expected: int, got: int):
        self.entry_name = entry_name
        self.offset = offset
        self.expected = expected
        self.got = got
        super().__init__(
            f"Unexpected end of archive in {entry_name!r}: read {got} of {expected} bytes at offset 0x{offset:08X}"
        )


class PathError(RgssadError):
    def __init__(self, message: str, *, entry_name: str, path: Optional[str] = None):
        self.entry_name = entry_name
        self.path = path
        super().__init__(message)
