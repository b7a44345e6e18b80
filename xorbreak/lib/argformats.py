#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
## Multibin Syntax

Units that receive binary data as an argument, such as the key for `xorbreak.xor`, parse it in
**multibin** format. A multibin expression may start with a handler prefix that determines how
the remainder of the string is converted to bytes:

- `s:string` is the UTF8 encoding of `string`
- `h:string` assumes that `string` is a hexadecimal string and returns the decoded bytes
- `b64:string` decodes `string` as Base64

If an argument does not use any handler, it is first interpreted as the path of an existing file
on disk and the contents of this file are returned. If there is no such file, the UTF8 encoding of
the string is returned.
"""
from __future__ import annotations

import os

from argparse import ArgumentTypeError
from typing import Callable, Union

from xorbreak.lib.encoding import b64_decode, hex_decode
from xorbreak.lib.exceptions import InvalidEncoding


def _s(string: str) -> bytes:
    return string.encode('utf8')


_HANDLERS: dict[str, Callable[[str], bytes]] = {
    's'   : _s,
    'h'   : hex_decode,
    'b64' : b64_decode,
}


def multibin(expression: Union[str, bytes, bytearray]) -> bytes:
    """
    The argument parser type for binary arguments; see the module documentation.
    """
    if not isinstance(expression, str):
        return bytes(expression)
    handler, colon, rest = expression.partition(':')
    if colon and handler in _HANDLERS:
        try:
            return _HANDLERS[handler](rest)
        except InvalidEncoding as E:
            raise ArgumentTypeError(F'invalid {handler} argument: {E!s}') from E
    if os.path.isfile(expression):
        with open(expression, 'rb') as stream:
            return stream.read()
    return _s(expression)


def number(expression: Union[str, int]) -> int:
    """
    Parses an integer in any notation that Python accepts, i.e. `0x10` is sixteen.
    """
    if isinstance(expression, int):
        return expression
    try:
        return int(expression, 0)
    except ValueError:
        raise ArgumentTypeError(F'the expression "{expression}" is not a valid integer.')


def sliceobj(expression: Union[int, str, slice]) -> slice:
    """
    Parses a slice in Python syntax with integer bounds, i.e. `2:40` or `1::2`. A single integer
    `n` is interpreted as the slice `n:n+1`.
    """
    if isinstance(expression, slice):
        return expression
    if isinstance(expression, int):
        return slice(expression, expression + 1)
    sliced = expression.split(':')
    if len(sliced) > 3:
        raise ArgumentTypeError(F'the expression "{expression}" is not a valid slice.')
    try:
        bounds = [int(t, 0) if t.strip() else None for t in sliced]
    except ValueError:
        raise ArgumentTypeError(F'the expression "{expression}" is not a valid slice.')
    if len(bounds) == 1:
        k, = bounds
        if k is None:
            return slice(None, None)
        return slice(k, k + 1)
    return slice(*bounds)
