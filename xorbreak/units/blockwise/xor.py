from __future__ import annotations

from xorbreak.lib.tools import cyclic_xor
from xorbreak.lib.types import Param, buf
from xorbreak.units import Arg, Unit


class xor(Unit):
    """
    Form the exclusive or of the input data with the given key, which is repeated as often as
    necessary to cover the input. The operation is its own inverse.
    """
    def __init__(self, key: Param[buf, Arg.Binary(help='The key; it is repeated cyclically.')]):
        super().__init__(key=key)

    def process(self, data):
        return cyclic_xor(data, self.args.key)

    def reverse(self, data):
        return self.process(data)
