from __future__ import annotations

import struct

from Cryptodome.Util.strxor import strxor

from .constants import INITIAL_KEY, KEY_INCREMENT, KEY_MASK, KEY_MULTIPLIER


class KeyStream:
    """Running 32-bit XOR key used by RGSSAD archives.

    Every produced unit (one byte or one little-endian word) is XORed with the
    current state, after which the state advances by ``state * 7 + 3``
    (mod 2**32). Encryption and decryption are the same operation.
    """

    __slots__ = ("state",)

    def __init__(self, state: int = INITIAL_KEY):
        self.state = state & KEY_MASK

    def __repr__(self) -> str:
        return f"KeyStream(0x{self.state:08X})"

    def advance(self) -> int:
        self.state = (self.state * KEY_MULTIPLIER + KEY_INCREMENT) & KEY_MASK
        return self.state

    def next_byte(self, value: int) -> int:
        out = (value ^ self.state) & 0xFF
        self.advance()
        return out

    def next_word(self, value: int) -> int:
        out = (value ^ self.state) & KEY_MASK
        self.advance()
        return out

    def copy(self) -> "KeyStream":
        return KeyStream(self.state)

    def key_bytes(self, n: int) -> bytes:
        """Return ``n`` keystream bytes for word-wise XOR, advancing once per
        started word. A partial trailing word uses the low bytes of its state.
        """
        n_words = (n + 3) // 4
        states = []
        for _ in range(n_words):
            states.append(self.state)
            self.advance()
        return struct.pack(f"<{n_words}I", *states)[:n]

    def xor_words(self, data: bytes) -> bytes:
        if not data:
            return b""
        return strxor(bytes(data), self.key_bytes(len(data)))
