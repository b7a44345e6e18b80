from __future__ import annotations

from xorbreak.lib.encoding import b64_decode, b64_encode
from xorbreak.units import Unit


class b64(Unit):
    """
    Base64 encoding and decoding with the standard alphabet. Line breaks in the input are ignored;
    the unit fails on characters outside the alphabet, misplaced padding, and inputs whose length
    is not a multiple of four.
    """

    def reverse(self, data):
        return b64_encode(data).encode(self.codec)

    def process(self, data):
        return b64_decode(data)
