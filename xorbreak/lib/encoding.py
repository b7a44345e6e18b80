"""
Strict hex and Base64 codecs. Unlike the lenient decoders of the standard library, malformed input
is always rejected with `xorbreak.lib.exceptions.InvalidEncoding`.
"""
from __future__ import annotations

import base64
import binascii
import re

from typing import Union

from xorbreak.lib.exceptions import InvalidEncoding
from xorbreak.lib.types import buf

_B64_BODY = re.compile(B'[A-Za-z0-9+/]*')


def _asbytes(data: Union[str, buf]) -> bytes:
    if isinstance(data, str):
        try:
            return data.encode('ascii')
        except UnicodeEncodeError as E:
            raise InvalidEncoding(F'non-ASCII character at offset {E.start}') from E
    return bytes(data)


def hex_decode(data: Union[str, buf]) -> bytes:
    """
    Decode a hexadecimal string. Leading and trailing whitespace is ignored, the string must have
    even length and consist only of hex digits.
    """
    data = _asbytes(data).strip()
    if len(data) % 2:
        raise InvalidEncoding(F'hex string has odd length {len(data)}')
    try:
        return base64.b16decode(data, casefold=True)
    except binascii.Error as E:
        raise InvalidEncoding(F'invalid hex string: {E!s}') from E


def hex_encode(data: buf) -> str:
    """
    Encode binary data as a lowercase hexadecimal string.
    """
    return bytes(data).hex()


def b64_decode(data: Union[str, buf]) -> bytes:
    """
    Decode Base64 with the standard alphabet. Whitespace is removed first; after that, the length
    has to be a multiple of four and padding may only occur as one or two trailing characters.
    """
    data = re.sub(B'\\s+', B'', _asbytes(data))
    if len(data) % 4:
        raise InvalidEncoding(F'Base64 input length {len(data)} is not a multiple of 4')
    body = data.rstrip(B'=')
    padding = len(data) - len(body)
    if padding > 2:
        raise InvalidEncoding(F'Base64 input has {padding} padding characters')
    match = _B64_BODY.match(body)
    if match.end() != len(body):
        offset = match.end()
        if body[offset] == 0x3D:
            raise InvalidEncoding(F'misplaced Base64 padding at offset {offset}')
        raise InvalidEncoding(F'invalid Base64 character 0x{body[offset]:02X} at offset {offset}')
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as E:
        raise InvalidEncoding(F'invalid Base64: {E!s}') from E


def b64_encode(data: buf) -> str:
    """
    Encode binary data as padded Base64 with the standard alphabet.
    """
    return base64.b64encode(bytes(data)).decode('ascii')
