from __future__ import annotations

from xorbreak.lib.encoding import hex_decode, hex_encode
from xorbreak.units import Unit


class hex(Unit):
    """
    Hex-decodes and encodes binary data. Surrounding whitespace is ignored, but unlike a lenient
    decoder, the unit fails on inputs of odd length and on any character that is not a hex digit.
    The encoding uses lowercase digits.
    """

    def reverse(self, data):
        return hex_encode(data).encode(self.codec)

    def process(self, data):
        return hex_decode(data)
