"""
Miscellaneous helper functions, most importantly the canonical implementations of the byte-level
operations used by the solvers: bit-level Hamming distance and cyclic XOR.
"""
from __future__ import annotations

import inspect
import os
import re
import sys

from typing import Callable, Generator, Iterable, TypeVar

from xorbreak.lib.exceptions import LengthMismatch
from xorbreak.lib.types import buf

_T = TypeVar('_T')

_POPCOUNT = bytes(bin(b).count('1') for b in range(0x100))


def get_terminal_size(default=0):
    """
    Returns the size of the currently attached terminal. If the width of the terminal cannot be
    determined or if the width is less than 2 characters, the function returns the default.
    """
    width = default
    for stream in (sys.stderr, sys.stdout):
        if stream.isatty():
            try:
                width = os.get_terminal_size(stream.fileno()).columns
            except Exception:
                width = default
            else:
                break
    return default if width < 2 else width - 1


def documentation(unit):
    """
    Return the documentation string of a given unit as it should be displayed on the command line.
    """
    docs = inspect.getdoc(unit) or ''
    docs = re.sub(R'`xorbreak\.(?:\w+\.)*(\w+)`', R'\1', docs)
    return docs.replace('`', '')


def skipfirst(iterable: Iterable[_T]) -> Generator[_T]:
    """
    Returns an interable where the first element of the input iterable was skipped.
    """
    it = iter(iterable)
    next(it)
    yield from it


def autoinvoke(method: Callable[..., _T], keywords: dict) -> _T:
    """
    For each parameter that `method` expects, this function looks for an entry in `keywords` which
    has the same name as that parameter. `autoinvoke` then calls `method` with all matching
    parameters forwarded in the appropriate manner.
    """
    kwdargs = {}
    posargs = []

    for p in inspect.signature(method).parameters.values():
        if p.kind is p.VAR_KEYWORD or p.kind is p.VAR_POSITIONAL:
            continue
        try:
            value = keywords.pop(p.name)
        except KeyError:
            value = p.default
            if value is p.empty:
                raise ValueError(F'missing required parameter {p.name}')
        if p.kind is p.POSITIONAL_OR_KEYWORD or p.kind is p.POSITIONAL_ONLY:
            posargs.append(value)
        else:
            kwdargs[p.name] = value

    return method(*posargs, **kwdargs)


def normalize_to_display(words: str, strip: bool = True):
    """
    Normalizes all word separators to dashes.
    """
    normalized = re.sub('[-\\s_.,;:/\\\\]+', '-', words)
    if strip:
        normalized = normalized.strip('-')
    return normalized


def exception_to_string(exception: BaseException, default=None) -> str:
    """
    Attempts to convert a given exception to a good description that can be exposed to the user.
    """
    if not exception.args:
        return exception.__class__.__name__
    it = (a for a in exception.args if isinstance(a, str))
    if default is None:
        default = str(exception)
    return max(it, key=len, default=default).strip()


def isbuffer(obj) -> bool:
    """
    Test whether `obj` is an object that supports the buffer API, like a bytes or bytearray object.
    """
    try:
        with memoryview(obj):
            return True
    except TypeError:
        return False


def splitchunks(
    data: buf,
    size: int,
    truncate: bool = False
) -> Iterable[buf]:
    """
    Split `data` into consecutive chunks of size `size`. The boolean parameter `truncate` specifies
    whether a final chunk of size smaller than `size` is generated or whether to stop as soon as
    the last complete chunk of the given size is extracted.
    """
    for k in range(0, len(data), size):
        chunk = data[k:k + size]
        if len(chunk) < size and truncate:
            break
        yield chunk


def hamming_distance(a: buf, b: buf) -> int:
    """
    Computes the number of differing bits between two byte strings of equal length. Raises
    `xorbreak.lib.exceptions.LengthMismatch` if the lengths differ.
    """
    if len(a) != len(b):
        raise LengthMismatch(len(a), len(b), 'byte strings')
    return sum(_POPCOUNT[x ^ y] for x, y in zip(a, b))


def cyclic_xor(data: buf, key: buf) -> bytes:
    """
    XOR the input with the key, repeating the key as often as necessary.
    """
    from Cryptodome.Util.strxor import strxor
    if not key:
        raise ValueError('the key must not be empty')
    if not data:
        return B''
    size = len(data)
    mask = bytes(key) * (size // len(key) + 1)
    return strxor(bytes(data), mask[:size])


def cyclic_base(data: bytes, min_repeat: int = 2) -> bytes | None:
    """
    If `data` consists of at least `min_repeat` full repetitions of a shorter string, return the
    shortest such string. Otherwise, return `None`.
    """
    n = len(data)
    for length in range(1, n // min_repeat + 1):
        if n % length:
            continue
        if data[:length] * (n // length) == data:
            return data[:length]
    return None
