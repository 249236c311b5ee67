"""Test-only encoder for building RGSSAD fixtures.

The keystream XOR is its own inverse, so encrypting a member applies the same
operations the reader uses to decrypt it.
"""

from __future__ import annotations

import struct
from typing import Iterable, List, Tuple, Union

from rgssad.constants import RGSSAD_MAGIC, RGSSAD_VERSION
from rgssad.keystream import KeyStream


HEADER = RGSSAD_MAGIC + bytes([0, RGSSAD_VERSION])


def encode_records(members: Iterable[Tuple[Union[str, bytes], bytes]], keys: KeyStream) -> List[bytes]:
    """Encrypt each (name, data) pair into one directory record + content.

    ``str`` names use '/' and are stored with '\\' separators like the engine
    does; ``bytes`` names are stored as given.
    """
    records = []
    for name, data in members:
        raw = name.replace("/", "\\").encode("utf-8") if isinstance(name, str) else name
        rec = bytearray()
        rec += struct.pack("<I", keys.next_word(len(raw)))
        rec += bytes(keys.next_byte(b) for b in raw)
        rec += struct.pack("<I", keys.next_word(len(data)))
        rec += KeyStream(keys.state).xor_words(data)
        records.append(bytes(rec))
    return records


def build_archive(members: Iterable[Tuple[Union[str, bytes], bytes]], *, header: bytes = HEADER) -> bytes:
    return header + b"".join(encode_records(members, KeyStream()))
