from __future__ import annotations

from xorbreak.lib.exceptions import NoValidDecoding
from xorbreak.lib.types import Param
from xorbreak.lib.xorcrack import RepeatingKeySolution, break_repeating_key_xor, estimate_keysizes
from xorbreak.units import Arg
from xorbreak.units.misc import CorpusUnit, keysize_range


class xkey(CorpusUnit):
    """
    Recover the key of a repeating-key XOR encryption. The most likely key sizes are estimated from
    the Hamming distance between adjacent blocks; for each of them, the ciphertext is transposed into
    one stream per key byte and every stream is solved as single-byte XOR. The key that decrypts
    to the text closest to the reference corpus is the output.
    """
    def __init__(
        self,
        sizes: Param[slice, Arg.Bounds(help='The range of key sizes to test; the default is {default}.')] = slice(2, 41),
        top: Param[int, Arg.Number('-t', '--top', help='Try the best N key sizes, the default is {default}.')] = 3,
        pairs: Param[int, Arg.Number('-p', '--pairs',
            help='The number of adjacent block pairs compared to estimate a key size, the default is {default}.')] = 4,
        **keywords
    ):
        super().__init__(sizes=sizes, top=top, pairs=pairs, **keywords)

    def _solve(self, data) -> RepeatingKeySolution:
        candidates = estimate_keysizes(data, keysize_range(self.args.sizes), self.args.pairs)
        if not candidates:
            raise NoValidDecoding(F'the input of length {len(data)} is too short for any of the key sizes')
        if self.args.top > 0:
            candidates = candidates[:self.args.top]
        for candidate in candidates:
            self.log_debug(F'key size {candidate.size} with score {candidate.score:.4f}')
        corpus = self._corpus()
        with self._executor() as executor:
            solution = break_repeating_key_xor(data, candidates, corpus, executor)
        self.log_info('recovered key:', solution.key, clip=True)
        return solution

    def process(self, data):
        return self._solve(data).key
