from __future__ import annotations

import struct
import unittest

from rgssad.keystream import KeyStream


class KeyStreamTests(unittest.TestCase):
    def test_pinned_sequence(self):
        ks = KeyStream()
        self.assertEqual(ks.state, 0xDEADCAFE)
        self.assertEqual(ks.next_word(0), 0xDEADCAFE)
        self.assertEqual(ks.next_word(0), 0x16C08CF5)
        self.assertEqual(ks.next_byte(0), 0xB6)
        self.assertEqual(ks.state, (0x9F43DAB6 * 7 + 3) & 0xFFFFFFFF)

    def test_wraparound(self):
        ks = KeyStream(0xFFFFFFFF)
        ks.advance()
        self.assertEqual(ks.state, (0xFFFFFFFF * 7 + 3) % (1 << 32))

    def test_same_seed_same_output(self):
        a = KeyStream(0x12345678)
        b = KeyStream(0x12345678)
        self.assertEqual([a.next_word(i) for i in range(50)], [b.next_word(i) for i in range(50)])
        self.assertEqual(a.state, b.state)

    def test_copy_is_independent(self):
        a = KeyStream()
        a.next_word(0)
        b = a.copy()
        self.assertEqual(a.state, b.state)
        a.next_byte(0)
        self.assertNotEqual(a.state, b.state)

    def test_next_byte_uses_low_byte(self):
        ks = KeyStream(0xAABBCCDD)
        self.assertEqual(ks.next_byte(0xDD), 0)

    def test_xor_words_matches_next_word(self):
        data = bytes(range(12))
        ks = KeyStream()
        expected = b"".join(
            struct.pack("<I", ks.next_word(w)) for (w,) in struct.iter_unpack("<I", data)
        )
        self.assertEqual(KeyStream().xor_words(data), expected)

    def test_xor_words_partial_word(self):
        for n in range(1, 6):
            data = b"\x00" * n
            ks = KeyStream()
            key = b"".join(struct.pack("<I", ks.next_word(0)) for _ in range((n + 3) // 4))[:n]
            self.assertEqual(KeyStream().xor_words(data), key, n)

    def test_xor_words_advances_per_started_word(self):
        ks = KeyStream()
        ks.xor_words(b"abcde")
        ref = KeyStream()
        ref.advance()
        ref.advance()
        self.assertEqual(ks.state, ref.state)

    def test_xor_words_is_involution(self):
        data = b"The quick brown fox jumps"
        self.assertEqual(KeyStream(7).xor_words(KeyStream(7).xor_words(data)), data)

    def test_xor_words_empty(self):
        ks = KeyStream()
        self.assertEqual(ks.xor_words(b""), b"")
        self.assertEqual(ks.state, 0xDEADCAFE)


if __name__ == "__main__":
    unittest.main()
