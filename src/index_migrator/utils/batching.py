"""Utilities for batched iteration."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

T = TypeVar("T")


def batched(iterable: Iterable[T], n: int) -> Iterator[list[T]]:
    """Yield successive batches of size *n* from *iterable*."""
    if n < 1:
        raise ValueError(f"batch size must be at least 1, got {n}")
    it = iter(iterable)
    while True:
        batch = list(islice(it, n))
        if not batch:
            return
        yield batch


def count_batches(total: int, n: int) -> int:
    """Number of batches :func:`batched` yields for *total* items."""
    if total <= 0:
        return 0
    return math.ceil(total / n)
