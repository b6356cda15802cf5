"""Ordered, indexed row stream over a CSV file."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

Row = dict[str, str]

# Metadata cells can be far larger than the csv module's 128 KiB default.
FIELD_SIZE_LIMIT = 2**31 - 1


class SourceUnavailable(Exception):
    """The dataset file is missing or cannot be read."""


class CsvRecordSource:
    """Yields ``(index, row)`` pairs; index 0 is the first row after the header."""

    def __init__(self, path: Path | str, delimiter: str = ",", encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.delimiter = delimiter
        self.encoding = encoding

    def check_readable(self) -> None:
        if not self.path.is_file():
            raise SourceUnavailable(f"dataset not found: {self.path}")
        try:
            with self.path.open("r", encoding=self.encoding, newline="") as fh:
                fh.read(1)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailable(f"cannot read dataset {self.path}: {exc}") from exc

    def records(self) -> Iterator[tuple[int, Row]]:
        """Stream rows in file order.

        Undecodable bytes and malformed CSV anywhere in the file raise
        :class:`SourceUnavailable`, naming the record where reading stopped.
        """
        csv.field_size_limit(FIELD_SIZE_LIMIT)
        try:
            fh = self.path.open("r", encoding=self.encoding, newline="")
        except OSError as exc:
            raise SourceUnavailable(f"cannot open dataset {self.path}: {exc}") from exc
        index = 0
        with fh:
            reader = csv.DictReader(fh, delimiter=self.delimiter)
            try:
                for row in reader:
                    # Short rows leave missing columns as None.
                    yield index, {key: value or "" for key, value in row.items() if key is not None}
                    index += 1
            except (csv.Error, UnicodeDecodeError) as exc:
                raise SourceUnavailable(f"cannot read dataset {self.path} at record {index}: {exc}") from exc

    def count(self) -> int:
        total = 0
        for _ in self.records():
            total += 1
        logger.info("CSV has %d total records", total)
        return total
