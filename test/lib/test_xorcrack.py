#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from xorbreak.lib import xorcrack
from xorbreak.lib.corpus import bundled_frequencies
from xorbreak.lib.exceptions import NoValidDecoding
from xorbreak.lib.frequency import compute_frequencies
from xorbreak.lib.tools import cyclic_xor

from .. import TestBase


class TestSingleByteXOR(TestBase):

    CIPHERTEXT = bytes.fromhex('1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736')

    def test_known_ciphertext(self):
        best = xorcrack.solve_single_byte_xor(self.CIPHERTEXT, bundled_frequencies())
        self.assertEqual(best.key, 0x58)
        self.assertEqual(best.plaintext, "Cooking MC's like a pound of bacon")
        self.assertGreater(best.pearson, 0)

    def test_with_executor(self):
        with ThreadPoolExecutor(4) as executor:
            best = xorcrack.solve_single_byte_xor(self.CIPHERTEXT, bundled_frequencies(), executor)
        self.assertEqual(best.key, 0x58)

    def test_english_text(self):
        plaintext = self.english_text(300)
        ciphertext = cyclic_xor(plaintext.encode('utf8'), B'\xA7')
        best = xorcrack.solve_single_byte_xor(ciphertext, bundled_frequencies())
        self.assertEqual(best.key, 0xA7)
        self.assertEqual(best.plaintext, plaintext)

    def test_invalid_candidates_are_skipped(self):
        self.assertIsNone(xorcrack.score_single_byte_key(0x00, B'\xFF', bundled_frequencies()))
        candidate = xorcrack.score_single_byte_key(0x00, B'A', bundled_frequencies())
        self.assertEqual(candidate.plaintext, 'A')

    def test_no_valid_decoding(self):
        # every key maps one of the bytes to a lone continuation byte or the other to a lead byte
        # that is not followed by a continuation byte
        with self.assertRaises(NoValidDecoding):
            xorcrack.solve_single_byte_xor(B'\x00\x80', bundled_frequencies())

    def test_empty_input(self):
        with self.assertRaises(NoValidDecoding):
            xorcrack.solve_single_byte_xor(B'', bundled_frequencies())

    def test_lowest_key_wins_a_tie(self):
        # the keys 0x10 and 0x30 decode to the same text up to case
        ciphertext = bytes(b ^ 0x10 for b in B'hello')
        best = xorcrack.solve_single_byte_xor(ciphertext, compute_frequencies('hello'))
        self.assertEqual(best.euclidean, 0)
        self.assertEqual(best.key, 0x10)
        self.assertEqual(best.plaintext, 'hello')

    def test_detection(self):
        corpus = bundled_frequencies()
        ciphertexts = [self.generate_random_buffer(60) for _ in range(20)]
        plaintext = 'Now that the party is jumping with the bass kicked in'
        ciphertexts[13] = cyclic_xor(plaintext.encode('utf8'), B'5')
        index, best = xorcrack.detect_single_byte_xor(ciphertexts, corpus)
        self.assertEqual(index, 13)
        self.assertEqual(best.key, ord('5'))
        self.assertEqual(best.plaintext, plaintext)

    def test_detection_without_candidates(self):
        with self.assertRaises(NoValidDecoding):
            xorcrack.detect_single_byte_xor([B'', B'\x00\x80'], bundled_frequencies())


class TestKeysizeEstimation(TestBase):

    def test_keysize_score(self):
        self.assertEqual(xorcrack.keysize_score(B'\x00\xFF', 1), 8.0)
        self.assertEqual(xorcrack.keysize_score(B'AAAA', 2), 0.0)
        self.assertIsNone(xorcrack.keysize_score(B'AAA', 2))

    def test_sizes_never_exceed_half_the_input(self):
        data = self.generate_random_buffer(25)
        candidates = xorcrack.estimate_keysizes(data, range(2, 41))
        self.assertTrue(candidates)
        for candidate in candidates:
            self.assertLessEqual(2 * candidate.size, len(data))
        self.assertEqual({c.size for c in candidates}, set(range(2, 13)))

    def test_candidates_are_sorted(self):
        data = self.generate_random_buffer(500)
        scores = [c.score for c in xorcrack.estimate_keysizes(data)]
        self.assertEqual(scores, sorted(scores))

    def test_short_input(self):
        self.assertEqual(xorcrack.estimate_keysizes(B'ABC', range(2, 10)), [])

    def test_true_keysize_ranks_high(self):
        key = self.generate_random_buffer(7)
        ciphertext = cyclic_xor(self.english_text(2000).encode('utf8'), key)
        candidates = xorcrack.estimate_keysizes(ciphertext, range(2, 41), pairs=20)
        self.assertTrue(any(c.size % 7 == 0 for c in candidates[:3]))

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            xorcrack.estimate_keysizes(B'ABCDEFGH', range(0, 4))
        with self.assertRaises(ValueError):
            xorcrack.estimate_keysizes(B'ABCDEFGH', range(1, 4), pairs=0)


class TestRepeatingKeyXOR(TestBase):

    def test_transpose(self):
        self.assertEqual(xorcrack.transpose(B'ABCDEFGH', 3), [B'ADG', B'BEH', B'CF'])

    def test_solve_keysize(self):
        plaintext = self.english_text(1500)
        ciphertext = cyclic_xor(plaintext.encode('utf8'), B'ICE')
        solution = xorcrack.solve_keysize(ciphertext, 3, bundled_frequencies())
        self.assertEqual(solution.key, B'ICE')
        self.assertEqual(solution.plaintext, plaintext)

    def test_round_trip(self):
        corpus = bundled_frequencies()
        plaintext = self.english_text(3000)
        for size in (3, 5, 7, 11):
            key = self.generate_random_buffer(size)
            ciphertext = cyclic_xor(plaintext.encode('utf8'), key)
            candidates = xorcrack.estimate_keysizes(ciphertext, range(2, 41))
            solution = xorcrack.break_repeating_key_xor(ciphertext, candidates[:5], corpus)
            self.assertEqual(solution.key, key, F'failure for length={size}')
            self.assertEqual(solution.plaintext, plaintext)

    def test_multiple_of_keysize_is_reduced(self):
        plaintext = self.english_text()
        key = B'Terminator X'
        ciphertext = cyclic_xor(plaintext.encode('utf8'), key)
        solution = xorcrack.break_repeating_key_xor(ciphertext, [24, 36], bundled_frequencies())
        self.assertEqual(solution.key, key)

    def test_with_executor(self):
        plaintext = self.english_text(2000)
        ciphertext = cyclic_xor(plaintext.encode('utf8'), B'SECRET')
        with ThreadPoolExecutor(2) as executor:
            solution = xorcrack.break_repeating_key_xor(ciphertext, range(2, 9), bundled_frequencies(), executor)
        self.assertEqual(solution.key, B'SECRET')

    def test_all_sizes_fail(self):
        with self.assertRaises(NoValidDecoding):
            xorcrack.break_repeating_key_xor(B'\x00\x80' * 8, [1], bundled_frequencies())

    def test_invalid_keysize(self):
        with self.assertRaises(ValueError):
            xorcrack.break_repeating_key_xor(B'ABCD', [0], bundled_frequencies())

    def test_first_keysize_wins_a_tie(self):
        keys = {2: B'AB', 3: B'XYZ'}

        def solve(ciphertext, size, corpus):
            return xorcrack.RepeatingKeySolution(keys[size], 'tied', 0.5, 0.1)

        with mock.patch.object(xorcrack, 'solve_keysize', side_effect=solve):
            self.assertEqual(xorcrack.break_repeating_key_xor(B'ABCDEF', [3, 2], bundled_frequencies()).key, B'XYZ')
            self.assertEqual(xorcrack.break_repeating_key_xor(B'ABCDEF', [2, 3], bundled_frequencies()).key, B'AB')
