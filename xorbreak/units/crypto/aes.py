from __future__ import annotations

from xorbreak.lib.types import Param, buf
from xorbreak.units import Arg, Unit


class aes(Unit):
    """
    AES decryption in ECB mode; the reverse operation encrypts. PKCS7 padding is removed after
    decryption and added before encryption, unless the raw option is given.
    """

    block_size = 16
    key_size = (16, 24, 32)

    def __init__(
        self,
        key: Param[buf, Arg(help='The encryption key.')],
        raw: Param[bool, Arg.Switch('-P', '--raw', help='Do not add or remove any padding.')] = False,
    ):
        super().__init__(key=key, raw=raw)

    def _cipher(self):
        from Cryptodome.Cipher import AES
        key = self.args.key
        if len(key) not in self.key_size:
            sizes = ', '.join(str(k) for k in self.key_size)
            raise ValueError(F'the given key has an invalid length of {len(key)} bytes; possible key sizes are: {sizes}.')
        return AES.new(key, AES.MODE_ECB)

    def process(self, data):
        if len(data) % self.block_size:
            raise ValueError(F'the input length {len(data)} is not a multiple of the block size {self.block_size}')
        result = self._cipher().decrypt(data)
        if self.args.raw:
            return result
        from Cryptodome.Util.Padding import unpad
        try:
            return unpad(result, self.block_size, 'pkcs7')
        except ValueError as E:
            raise ValueError(F'unable to remove PKCS7 padding: {E!s}') from E

    def reverse(self, data):
        if self.args.raw:
            if len(data) % self.block_size:
                raise ValueError(F'the input length {len(data)} is not a multiple of the block size {self.block_size}')
        else:
            from Cryptodome.Util.Padding import pad
            self.log_info('padding method:', 'pkcs7')
            data = pad(data, self.block_size, 'pkcs7')
        return self._cipher().encrypt(data)
