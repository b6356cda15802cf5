"""Group an indexed record stream into resumable batches."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from index_migrator.utils.batching import batched


@dataclass
class Batch:
    """A contiguous slice of the dataset submitted in one bulk request.

    ``start_index`` is the position of the first record in the full
    dataset; together with ``size`` it identifies the batch for
    checkpoint purposes.
    """

    start_index: int
    documents: list[Any] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.documents)

    @property
    def end_index(self) -> int:
        return self.start_index + self.size


def plan_batches(
    records: Iterable[tuple[int, Any]],
    batch_size: int,
    resume_from: int = 0,
    transform: Callable[[Any], Any] | None = None,
) -> Iterator[Batch]:
    """Lazily split ``(dataset_index, record)`` pairs into batches.

    Records whose index is below *resume_from* are skipped. Each record
    is passed through *transform* when one is given.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    retained = ((index, record) for index, record in records if index >= resume_from)
    return _iter_batches(retained, batch_size, transform)


def _iter_batches(
    retained: Iterable[tuple[int, Any]],
    batch_size: int,
    transform: Callable[[Any], Any] | None,
) -> Iterator[Batch]:
    for chunk in batched(retained, batch_size):
        start_index = chunk[0][0]
        if transform is None:
            documents = [record for _, record in chunk]
        else:
            documents = [transform(record) for _, record in chunk]
        yield Batch(start_index=start_index, documents=documents)
