"""
This module is used as a unified resource for various types that are primarily used for type hints.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

_T = TypeVar('_T')

if TYPE_CHECKING:
    from typing import (
        Annotated,
        Callable,
        Iterable,
        Union,
    )

    Param = Annotated
    buf = Union[bytes, bytearray, memoryview]

else:
    class __P:
        def __getitem__(self, annotation):
            return annotation[1]

    Param = __P()
    buf = Any

    Callable = Any
    Iterable = Any


__all__ = [
    'buf',
    'Callable',
    'Iterable',
    'Param',
]
