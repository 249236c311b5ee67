from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Tuple

from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_ENCODING,
    DIR_MODE,
    HEADER_SIZE,
    LENGTH_FIELD_SIZE,
    RGSSAD_MAGIC,
)
from .errors import DecodeError, InvalidFormat, PathError, RgssadError, ShortReadError
from .keystream import KeyStream


_LENGTH_STRUCT = struct.Struct("<I")


@dataclass(frozen=True)
class Entry:
    name: str
    content_length: int
    content_offset: int
    key_state: int


def _require_seekable(f: BinaryIO) -> None:
    if not f.seekable():
        raise ValueError("RGSSAD archives can only be read from seekable streams")


def _stream_size(f: BinaryIO) -> int:
    pos = f.tell()
    end = f.seek(0, os.SEEK_END)
    f.seek(pos, os.SEEK_SET)
    return end


def _read_at_most(f: BinaryIO, n: int) -> bytes:
    data = f.read(n)
    while len(data) < n:
        more = f.read(n - len(data))
        if not more:
            break
        data += more
    return data


def read_header(f: BinaryIO) -> int:
    """Validate the 8-byte header and return its version byte."""
    raw = _read_at_most(f, HEADER_SIZE)
    if len(raw) != HEADER_SIZE:
        raise InvalidFormat("Header too short; not an RGSSAD archive")
    if raw[: len(RGSSAD_MAGIC)] != RGSSAD_MAGIC:
        raise InvalidFormat("Bad header magic; not an RGSSAD archive")
    return raw[HEADER_SIZE - 1]


def read_entries(f: BinaryIO, *, encoding: str = DEFAULT_ENCODING) -> List[Entry]:
    """Decode the directory records following the header.

    The stream must be positioned right after the header. A single keystream is
    threaded through every record, so records must be read in archive order.
    Entry content is skipped with a seek and never read here.
    """
    _require_seekable(f)
    total = _stream_size(f)
    keys = KeyStream()
    entries: List[Entry] = []

    while True:
        record_offset = f.tell()
        raw = _read_at_most(f, LENGTH_FIELD_SIZE)
        if not raw:
            break
        if len(raw) != LENGTH_FIELD_SIZE:
            raise DecodeError("Truncated name length", offset=record_offset)
        (enc_len,) = _LENGTH_STRUCT.unpack(raw)
        name_length = keys.next_word(enc_len)
        if name_length == 0:
            raise DecodeError("Empty entry name", offset=record_offset)
        if name_length > total - f.tell():
            raise DecodeError(f"Name length {name_length} exceeds archive size", offset=record_offset)

        enc_name = _read_at_most(f, name_length)
        if len(enc_name) != name_length:
            raise DecodeError("Truncated entry name", offset=record_offset)
        name_buf = bytearray(keys.next_byte(b) for b in enc_name)
        name_buf = name_buf.replace(b"\\", b"/")
        try:
            name = name_buf.decode(encoding)
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Entry name is not valid {encoding}: {exc.reason}", offset=record_offset) from exc

        raw = _read_at_most(f, LENGTH_FIELD_SIZE)
        if len(raw) != LENGTH_FIELD_SIZE:
            raise DecodeError("Truncated content length", offset=record_offset, entry_name=name)
        (enc_size,) = _LENGTH_STRUCT.unpack(raw)
        content_length = keys.next_word(enc_size)

        content_offset = f.tell()
        if content_length > total - content_offset:
            raise DecodeError(
                f"Content length {content_length} runs past end of archive",
                offset=record_offset,
                entry_name=name,
            )
        entries.append(
            Entry(
                name=name,
                content_length=content_length,
                content_offset=content_offset,
                key_state=keys.state,
            )
        )
        f.seek(content_length, os.SEEK_CUR)

    return entries


def check_chunk_size(chunk_size: int) -> None:
    # Word alignment must hold across chunk boundaries
    if chunk_size <= 0 or chunk_size % 4:
        raise ValueError("chunk_size must be a positive multiple of 4")


def iter_entry_content(f: BinaryIO, entry: Entry, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the decrypted content of ``entry`` in chunks of at most ``chunk_size``.

    The keystream restarts from ``entry.key_state`` on every call, so the same
    entry may be extracted any number of times.
    """
    check_chunk_size(chunk_size)
    if entry.content_length == 0:
        return
    f.seek(entry.content_offset, os.SEEK_SET)
    keys = KeyStream(entry.key_state)
    remaining = entry.content_length
    while remaining > 0:
        data = _read_at_most(f, min(chunk_size, remaining))
        if not data:
            raise ShortReadError(
                entry.name,
                entry.content_offset,
                entry.content_length,
                entry.content_length - remaining,
            )
        remaining -= len(data)
        yield keys.xor_words(data)


class ArchiveReader:
    def __init__(self, path: Optional[str] = None, *, encoding: str = DEFAULT_ENCODING):
        self.path = path
        self.encoding = encoding
        self.f: Optional[BinaryIO] = None
        self.version: int = 0
        self.entries: Tuple[Entry, ...] = ()

    @classmethod
    def from_fileobj(cls, f: BinaryIO, *, encoding: str = DEFAULT_ENCODING) -> "ArchiveReader":
        name = getattr(f, "name", None)
        reader = cls(name if isinstance(name, str) else None, encoding=encoding)
        reader._load(f)
        return reader

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        if self.path is None:
            raise RuntimeError("No archive path to open")
        self._load(open(self.path, "rb"))

    def _load(self, f: BinaryIO):
        self.f = f
        try:
            _require_seekable(f)
            self.version = read_header(f)
            self.entries = tuple(read_entries(f, encoding=self.encoding))
        except (RgssadError, OSError, ValueError):
            # A partially decoded directory is never usable
            self.close()
            raise

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def list(self) -> List[Entry]:
        return list(self.entries)

    def total_size(self) -> int:
        return sum(e.content_length for e in self.entries)

    def _require_open(self) -> BinaryIO:
        if self.f is None:
            raise RuntimeError("Archive not open")
        return self.f

    def iter_content(self, entry: Entry, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        return iter_entry_content(self._require_open(), entry, chunk_size)

    def read(self, entry: Entry) -> bytes:
        return b"".join(self.iter_content(entry))

    def extract(self, entry: Entry, out_path: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        f = self._require_open()
        check_chunk_size(chunk_size)
        parent = os.path.dirname(out_path)
        try:
            if parent:
                os.makedirs(parent, mode=DIR_MODE, exist_ok=True)
            wf = open(out_path, "wb")
        except (OSError, ValueError) as exc:
            reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else exc
            raise PathError(f"Cannot create {out_path}: {reason}", entry_name=entry.name, path=out_path) from exc
        try:
            with wf:
                for chunk in iter_entry_content(f, entry, chunk_size):
                    wf.write(chunk)
        except ShortReadError:
            # Never leave a truncated entry behind
            os.remove(out_path)
            raise


def parse(f: BinaryIO, *, encoding: str = DEFAULT_ENCODING) -> ArchiveReader:
    """Parse an already open archive stream into an :class:`ArchiveReader`.

    The reader takes ownership of ``f`` and closes it on :meth:`ArchiveReader.close`.
    """
    return ArchiveReader.from_fileobj(f, encoding=encoding)
