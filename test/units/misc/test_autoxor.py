#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from xorbreak.lib.tools import cyclic_xor

from .. import TestUnitBase


class TestAutoXOR(TestUnitBase):

    def test_plaintext_recovery(self):
        plaintext = self.english_text(3000)
        key = self.generate_random_buffer(5)
        encrypted = cyclic_xor(plaintext.encode('utf8'), key)
        self.assertEqual(encrypted | self.load(top=5) | str, plaintext)

    def test_pipeline(self):
        plaintext = self.english_text()
        encoded = cyclic_xor(plaintext.encode('utf8'), B'Terminator X: Bring the noise').hex()
        pipeline = self.load_pipeline('hex | autoxor 20:40 -t 8', clear_cache=True)
        self.assertEqual(encoded | pipeline | str, plaintext)

    def test_jobs_use_executor(self):
        plaintext = self.english_text(1500)
        encrypted = cyclic_xor(plaintext.encode('utf8'), B'KEY')
        with mock.patch('concurrent.futures.ProcessPoolExecutor', ThreadPoolExecutor):
            self.assertEqual(encrypted | self.load('3:4', jobs=2) | str, plaintext)
