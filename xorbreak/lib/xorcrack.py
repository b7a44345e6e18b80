"""
Statistical attacks against single-byte and repeating-key XOR. All functions compare character
frequencies of candidate plaintexts against the frequency vector of a reference corpus, see
`xorbreak.lib.frequency`. The corpus vector is never modified.

The searches are expressed as a map over a finite candidate set followed by a reduction to the
candidate of minimum Euclidean distance. Each search function accepts an optional `executor`
argument; any object with an `Executor.map` compatible method can be passed to distribute the
work, for example a `concurrent.futures.ProcessPoolExecutor`.

    >>> corpus = compute_frequencies(english_text)
    >>> sizes = estimate_keysizes(ciphertext, range(2, 41))[:3]
    >>> solution = break_repeating_key_xor(ciphertext, sizes, corpus)
    >>> solution.key
    b'Terminator X: Bring the noise'
"""
from __future__ import annotations

import functools
import math

from typing import Iterable, NamedTuple, Optional, Sequence, Union

from xorbreak.lib.environment import LogLevel, logger
from xorbreak.lib.exceptions import NoValidDecoding
from xorbreak.lib.frequency import FrequencyVector, compute_frequencies
from xorbreak.lib.stats import correlation, euclidean_distance
from xorbreak.lib.tools import cyclic_base, cyclic_xor, hamming_distance, splitchunks
from xorbreak.lib.types import buf

_log = logger(__name__)


class ScoredCandidate(NamedTuple):
    """
    A single-byte key together with the text it decodes to and both similarity scores of that
    text with respect to the corpus.
    """
    key: int
    plaintext: str
    euclidean: float
    pearson: float


class KeysizeCandidate(NamedTuple):
    """
    A potential length of a repeating XOR key; a lower score indicates a more likely size.
    """
    size: int
    score: float


class RepeatingKeySolution(NamedTuple):
    key: bytes
    plaintext: str
    euclidean: float
    pearson: float


def _map(executor, function, iterable):
    if executor is None:
        return map(function, iterable)
    return executor.map(function, iterable)


def _best(candidates: Iterable[Optional[ScoredCandidate]]) -> Optional[ScoredCandidate]:
    survivors = [c for c in candidates if c is not None]
    if not survivors:
        return None
    best = min(survivors, key=lambda c: c.euclidean)
    if _log.isEnabledFor(LogLevel.DEBUG):
        rival = max(survivors, key=lambda c: -math.inf if math.isnan(c.pearson) else c.pearson)
        if rival.key != best.key:
            _log.debug(
                F'best Euclidean score for key 0x{best.key:02X} ({best.euclidean:.4f}) differs from '
                F'best Pearson score for key 0x{rival.key:02X} ({rival.pearson:.4f})')
    return best


def score_single_byte_key(key: int, ciphertext: bytes, corpus: FrequencyVector) -> Optional[ScoredCandidate]:
    """
    Decrypt the ciphertext with a single key byte and score the result. Returns `None` when the
    decrypted bytes are not valid UTF-8.
    """
    try:
        plaintext = cyclic_xor(ciphertext, bytes((key,))).decode('utf8')
    except UnicodeDecodeError:
        return None
    frequencies = compute_frequencies(plaintext)
    return ScoredCandidate(
        key,
        plaintext,
        euclidean_distance(corpus, frequencies),
        correlation(corpus, frequencies),
    )


def solve_single_byte_xor(
    ciphertext: buf,
    corpus: FrequencyVector,
    executor=None,
) -> ScoredCandidate:
    """
    Try all 256 possible key bytes and return the candidate whose plaintext has the lowest Euclidean
    distance to the corpus; the lowest key value wins a tie. Raises
    `xorbreak.lib.exceptions.NoValidDecoding` when no key byte produces valid UTF-8, or when the
    ciphertext is empty.
    """
    ciphertext = bytes(ciphertext)
    if not ciphertext:
        raise NoValidDecoding('cannot solve single byte XOR for empty input')
    score = functools.partial(score_single_byte_key, ciphertext=ciphertext, corpus=corpus)
    best = _best(_map(executor, score, range(0x100)))
    if best is None:
        raise NoValidDecoding(F'none of the 256 key bytes decodes {len(ciphertext)} bytes to valid UTF-8')
    _log.debug(F'single byte key 0x{best.key:02X} with score {best.euclidean:.4f}')
    return best


def _solve_or_none(ciphertext: bytes, corpus: FrequencyVector) -> Optional[ScoredCandidate]:
    try:
        return solve_single_byte_xor(ciphertext, corpus)
    except NoValidDecoding:
        return None


def detect_single_byte_xor(
    ciphertexts: Sequence[buf],
    corpus: FrequencyVector,
    executor=None,
) -> tuple[int, ScoredCandidate]:
    """
    Given several ciphertexts, find the one that is most likely encrypted with single-byte XOR.
    Returns its index and its best candidate. Ciphertexts without a valid decoding are skipped;
    if there is none with a valid decoding, `xorbreak.lib.exceptions.NoValidDecoding` is raised.
    """
    solve = functools.partial(_solve_or_none, corpus=corpus)
    results = list(_map(executor, solve, [bytes(c) for c in ciphertexts]))
    indexed = [(k, r) for k, r in enumerate(results) if r is not None]
    if not indexed:
        raise NoValidDecoding(F'none of the {len(results)} inputs has a valid single byte XOR decoding')
    index, best = min(indexed, key=lambda t: t[1].euclidean)
    _log.info(F'input {index} decodes with key 0x{best.key:02X} and score {best.euclidean:.4f}')
    return index, best


def keysize_score(ciphertext: buf, size: int, pairs: int = 4) -> Optional[float]:
    """
    The average normalized Hamming distance between up to `pairs` pairs of adjacent blocks of the
    given size, taken from the start of the ciphertext. Returns `None` when the ciphertext does not
    contain two full blocks.
    """
    blocks = list(splitchunks(memoryview(ciphertext)[:2 * size * pairs], size, truncate=True))
    count = len(blocks) // 2
    if count < 1:
        return None
    total = sum(hamming_distance(blocks[2 * k], blocks[2 * k + 1]) for k in range(count))
    return total / count / size


def estimate_keysizes(
    ciphertext: buf,
    sizes: range = range(2, 41),
    pairs: int = 4,
) -> list[KeysizeCandidate]:
    """
    Score every key length in the given range and return the candidates in ascending order of
    their score, i.e. the most likely key length comes first. Key lengths for which the input does
    not contain at least two full blocks are omitted.
    """
    if sizes.start < 1:
        raise ValueError(F'key sizes must be positive, the range starts at {sizes.start}')
    if pairs < 1:
        raise ValueError('at least one block pair is required for scoring')
    candidates = []
    for size in sizes:
        score = keysize_score(ciphertext, size, pairs)
        if score is None:
            _log.debug(F'skipping key size {size}, input of length {len(ciphertext)} is too short')
            continue
        candidates.append(KeysizeCandidate(size, score))
    candidates.sort(key=lambda c: (c.score, c.size))
    return candidates


def transpose(ciphertext: buf, size: int) -> list[bytes]:
    """
    Split the ciphertext into `size` interleaved streams; stream `k` contains every byte at an
    offset that is congruent to `k` modulo `size`.
    """
    data = bytes(ciphertext)
    return [data[k::size] for k in range(size)]


def solve_keysize(ciphertext: buf, size: int, corpus: FrequencyVector) -> RepeatingKeySolution:
    """
    Recover a repeating XOR key of the given length by solving each transposed stream as a single
    byte XOR. Raises `xorbreak.lib.exceptions.NoValidDecoding` if any stream has no valid decoding
    or if the reassembled plaintext is not valid UTF-8.
    """
    ciphertext = bytes(ciphertext)
    key = bytearray()
    for k, stream in enumerate(transpose(ciphertext, size)):
        try:
            solution = solve_single_byte_xor(stream, corpus)
        except NoValidDecoding as E:
            raise NoValidDecoding(F'key size {size}, stream {k}: {E!s}') from E
        key.append(solution.key)
    key = bytes(key)
    try:
        plaintext = cyclic_xor(ciphertext, key).decode('utf8')
    except UnicodeDecodeError as E:
        raise NoValidDecoding(F'key size {size} does not decrypt to valid UTF-8') from E
    frequencies = compute_frequencies(plaintext)
    return RepeatingKeySolution(
        key,
        plaintext,
        euclidean_distance(corpus, frequencies),
        correlation(corpus, frequencies),
    )


def _solve_keysize_or_none(size: int, ciphertext: bytes, corpus: FrequencyVector) -> Optional[RepeatingKeySolution]:
    try:
        return solve_keysize(ciphertext, size, corpus)
    except NoValidDecoding as E:
        _log.info(F'discarding candidate: {E!s}')
        return None


def break_repeating_key_xor(
    ciphertext: buf,
    keysizes: Iterable[Union[int, KeysizeCandidate]],
    corpus: FrequencyVector,
    executor=None,
) -> RepeatingKeySolution:
    """
    Solve the ciphertext for each of the given key sizes and return the solution whose plaintext is
    closest to the corpus. Key sizes without a valid decoding are skipped; when all of them fail,
    `xorbreak.lib.exceptions.NoValidDecoding` is raised. A key that is a repetition of a shorter
    key is reduced to that shorter key.
    """
    sizes = [c.size if isinstance(c, KeysizeCandidate) else int(c) for c in keysizes]
    if any(size < 1 for size in sizes):
        raise ValueError('key sizes must be positive')
    solve = functools.partial(_solve_keysize_or_none, ciphertext=bytes(ciphertext), corpus=corpus)
    solutions = [s for s in _map(executor, solve, sizes) if s is not None]
    for solution in solutions:
        _log.debug(F'key size {len(solution.key)} scored {solution.euclidean:.4f}: {solution.key!r}')
    if not solutions:
        raise NoValidDecoding(F'none of the {len(sizes)} key sizes produced a valid decoding')
    best = min(solutions, key=lambda s: s.euclidean)
    if base := cyclic_base(best.key):
        _log.info(F'reducing key of length {len(best.key)} to its period {len(base)}')
        best = best._replace(key=base)
    return best
