"""
Statistical functions for comparing two frequency vectors. The Euclidean distance is the primary
similarity measure used by the solvers, where lower is better. The Pearson correlation is computed
alongside it for diagnostic purposes, where higher is better; the two measures do not always agree
on which candidate is the most similar one.
"""
from __future__ import annotations

import math

from typing import Sequence

from xorbreak.lib.exceptions import LengthMismatch


def _check_lengths(x: Sequence[float], y: Sequence[float]):
    if len(x) != len(y):
        raise LengthMismatch(len(x), len(y), 'frequency vectors')


def mean(values: Sequence[float]) -> float:
    """
    The arithmetic mean of a series.
    """
    return math.fsum(values) / len(values)


def std_dev(values: Sequence[float]) -> float:
    """
    The population standard deviation of a series.
    """
    m = mean(values)
    return math.sqrt(math.fsum((x - m) ** 2 for x in values) / len(values))


def covariance(x: Sequence[float], y: Sequence[float]) -> float:
    """
    The population covariance of two series of equal length.
    """
    _check_lengths(x, y)
    mx = mean(x)
    my = mean(y)
    return math.fsum((a - mx) * (b - my) for a, b in zip(x, y)) / len(x)


def euclidean_distance(x: Sequence[float], y: Sequence[float]) -> float:
    """
    The Euclidean distance between two series of equal length. Raises
    `xorbreak.lib.exceptions.LengthMismatch` if the lengths differ.
    """
    _check_lengths(x, y)
    return math.sqrt(math.fsum((a - b) ** 2 for a, b in zip(x, y)))


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    The Pearson correlation coefficient of two series of equal length. The result is `nan` when
    one of the series has zero variance, because the coefficient is undefined in that case.
    Raises `xorbreak.lib.exceptions.LengthMismatch` if the lengths differ.
    """
    _check_lengths(x, y)
    if not x:
        return math.nan
    deviation = std_dev(x) * std_dev(y)
    if not deviation:
        return math.nan
    return covariance(x, y) / deviation
