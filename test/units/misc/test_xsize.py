#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from xorbreak.lib.tools import cyclic_xor

from .. import TestUnitBase


class TestKeysizeUnit(TestUnitBase):

    def _candidates(self, output: str):
        return [(int(size), float(score)) for size, score in (line.split() for line in output.splitlines())]

    def test_output_format(self):
        data = self.generate_random_buffer(100)
        candidates = self._candidates(data | self.load() | str)
        self.assertEqual({size for size, _ in candidates}, set(range(2, 41)))
        scores = [score for _, score in candidates]
        self.assertEqual(scores, sorted(scores))

    def test_top(self):
        data = self.generate_random_buffer(100)
        self.assertEqual(len(self._candidates(data | self.load(top=5) | str)), 5)
        self.assertEqual(len(self._candidates(data | self.load('-t', '3') | str)), 3)

    def test_range_argument(self):
        data = self.generate_random_buffer(100)
        candidates = self._candidates(data | self.load('4:9') | str)
        self.assertEqual({size for size, _ in candidates}, set(range(4, 9)))

    def test_detects_key_size(self):
        key = self.generate_random_buffer(6)
        ciphertext = cyclic_xor(self.english_text(3000).encode('utf8'), key)
        candidates = self._candidates(ciphertext | self.load('2:20', pairs=30, top=3) | str)
        self.assertTrue(any(size % 6 == 0 for size, _ in candidates))

    def test_short_input(self):
        self.assertEqual(B'ABC' | self.load() | bytes, B'')
