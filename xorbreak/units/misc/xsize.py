from __future__ import annotations

from xorbreak.lib.types import Param
from xorbreak.lib.xorcrack import estimate_keysizes
from xorbreak.units import Arg, Unit
from xorbreak.units.misc import keysize_range


class xsize(Unit):
    """
    Estimate the length of a repeating XOR key. For each candidate length, adjacent blocks of that
    length are compared and their average Hamming distance per byte is computed; the correct key
    length and its multiples tend to have the lowest score. The output contains one candidate per
    line, the size followed by its score, best candidates first.
    """
    def __init__(
        self,
        sizes: Param[slice, Arg.Bounds(help='The range of key sizes to test; the default is {default}.')] = slice(2, 41),
        top: Param[int, Arg.Number('-t', '--top', help='Output only the best N candidates.')] = 0,
        pairs: Param[int, Arg.Number('-p', '--pairs',
            help='The number of adjacent block pairs that are compared, the default is {default}.')] = 4,
    ):
        super().__init__(sizes=sizes, top=top, pairs=pairs)

    def process(self, data):
        candidates = estimate_keysizes(data, keysize_range(self.args.sizes), self.args.pairs)
        if not candidates:
            self.log_warn(F'the input of length {len(data)} is too short for any of the key sizes')
            return None
        if self.args.top > 0:
            candidates = candidates[:self.args.top]
        return '\n'.join(F'{c.size} {c.score:.5f}' for c in candidates).encode(self.codec)
