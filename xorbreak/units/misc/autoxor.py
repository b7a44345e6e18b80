from __future__ import annotations

from xorbreak.units.misc.xkey import xkey


class autoxor(xkey):
    """
    Decrypt repeating-key XOR without knowing the key. The key is recovered in the same way as by
    `xorbreak.xkey`, and the decrypted text is the output.
    """
    def process(self, data):
        return self._solve(data).plaintext.encode(self.codec)
