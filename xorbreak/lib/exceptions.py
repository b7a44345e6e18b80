"""
All exception types raised by xorbreak. The analysis core raises `LengthMismatch`,
`InvalidEncoding` and `NoValidDecoding`; the corpus provider raises `CorpusUnavailable`.
The remaining types are used by the unit framework to decide how a failure is reported.
"""
from __future__ import annotations


class XorBreakException(Exception):
    """
    Base class for all exceptions raised by xorbreak.
    """


class XorBreakCriticalException(XorBreakException):
    """
    A critical error that terminates the execution of a unit.
    """


class XorBreakPotentialUserError(XorBreakException):
    """
    An error that is likely caused by wrong input or arguments; it is reported to the user as a
    warning rather than as a failure.
    """


class LengthMismatch(XorBreakException, ValueError):
    """
    Two sequences that have to be of equal length are not.
    """
    def __init__(self, a: int, b: int, what: str = 'sequences'):
        super().__init__(F'{what} differ in size: {a} != {b}')
        self.lengths = (a, b)


class InvalidEncoding(XorBreakPotentialUserError, ValueError):
    """
    Malformed hex or Base64 input.
    """


class NoValidDecoding(XorBreakPotentialUserError, LookupError):
    """
    No key candidate produced a valid decoding. This is a regular outcome of a solver and not a
    program error; callers can move on to the next candidate.
    """


class CorpusUnavailable(XorBreakException, OSError):
    """
    The reference corpus could not be fetched, cached, or parsed.
    """
