from __future__ import annotations

from xorbreak.lib.encoding import hex_decode
from xorbreak.lib.types import Param
from xorbreak.lib.xorcrack import detect_single_byte_xor, solve_single_byte_xor
from xorbreak.units import Arg
from xorbreak.units.misc import CorpusUnit


class xchar(CorpusUnit):
    """
    Break single-byte XOR encryption: The input is decrypted with each of the 256 possible key bytes,
    and the plaintext whose character frequencies are closest to the reference corpus is returned.
    Candidates that are not valid UTF-8 are discarded. The recovered key is logged at info level.
    """
    def __init__(
        self,
        lines: Param[bool, Arg.Switch('-l', '--lines', help=(
            'Treat each input line as a hex-encoded ciphertext and only decrypt the line that is most '
            'likely encrypted with single-byte XOR.'))] = False,
        **keywords
    ):
        super().__init__(lines=lines, **keywords)

    def process(self, data):
        corpus = self._corpus()
        with self._executor() as executor:
            if self.args.lines:
                ciphertexts = [hex_decode(line) for line in data.splitlines() if line.strip()]
                index, best = detect_single_byte_xor(ciphertexts, corpus, executor)
                self.log_info(F'line {index + 1} of {len(ciphertexts)} is encrypted with single-byte XOR')
            else:
                best = solve_single_byte_xor(data, corpus, executor)
        self.log_info(F'key 0x{best.key:02X} with Euclidean distance {best.euclidean:.4f} and correlation {best.pearson:.4f}')
        return best.plaintext.encode(self.codec)
