"""Mats list notation: "1-6,9,12-15".

A list is made of comma separated singletons and inclusive ranges. Every
value is a positive integer and the whole list must be strictly ascending,
so ranges may touch ("1-3,4-6") but never overlap or repeat.

Pure logic, no DB access.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Iterator

from shelterbeds.domain.errors import MatsListFormatError


class MatsList:
    """Validated, ascending set of mat numbers parsed from range notation.

    Raises:
        MatsListFormatError: on construction, naming the offending token.

    Example:
        >>> MatsList("1-3,5").exploded()
        [1, 2, 3, 5]
    """

    def __init__(self, text: str) -> None:
        self.text = text
        # Inclusive (start, end) pairs, ascending and disjoint
        self._ranges: list[tuple[int, int]] = _parse(text)
        self._starts = [start for start, _ in self._ranges]

    def exploded(self) -> list[int]:
        """All mat numbers in ascending order."""
        return list(self)

    def is_member_of(self, mat_number: int) -> bool:
        """True if mat_number appears in this list."""
        i = bisect_right(self._starts, mat_number) - 1
        if i < 0:
            return False
        start, end = self._ranges[i]
        return start <= mat_number <= end

    def is_subset_of(self, other: MatsList) -> bool:
        """True if every mat in this list is also in other."""
        return all(other.is_member_of(n) for n in self)

    def __iter__(self) -> Iterator[int]:
        for start, end in self._ranges:
            yield from range(start, end + 1)

    def __len__(self) -> int:
        return sum(end - start + 1 for start, end in self._ranges)

    def __contains__(self, mat_number: object) -> bool:
        return isinstance(mat_number, int) and self.is_member_of(mat_number)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatsList):
            return NotImplemented
        return self._ranges == other._ranges

    def __hash__(self) -> int:
        return hash(tuple(self._ranges))

    def __str__(self) -> str:
        return ",".join(
            str(start) if start == end else f"{start}-{end}"
            for start, end in self._ranges
        )

    def __repr__(self) -> str:
        return f"MatsList({self.text!r})"


def _parse(text: str) -> list[tuple[int, int]]:
    if text is None or not text.strip():
        raise MatsListFormatError(text or "", "must contain at least one item")

    ranges: list[tuple[int, int]] = []
    highest = 0

    for raw in text.split(","):
        item = raw.strip()
        if not item:
            raise MatsListFormatError(text, "must not contain an empty item")

        if "-" in item:
            parts = item.split("-")
            if len(parts) != 2:
                raise MatsListFormatError(item, "must not contain more than one dash")
            start = _positive_int(parts[0])
            end = _positive_int(parts[1])
            if start > end:
                raise MatsListFormatError(item, "must have lower number first")
            if start <= highest:
                raise MatsListFormatError(item, "is out of ascending order")
        else:
            start = end = _positive_int(item)
            if start <= highest:
                raise MatsListFormatError(item, "is out of ascending order")

        # Touching ranges collapse into one ("1-3,4-6" is 1-6)
        if ranges and ranges[-1][1] + 1 == start:
            ranges[-1] = (ranges[-1][0], end)
        else:
            ranges.append((start, end))
        highest = end

    return ranges


def _positive_int(token: str) -> int:
    trimmed = token.strip()
    if not trimmed:
        raise MatsListFormatError(token, "cannot be blank")
    if not (trimmed.isascii() and trimmed.isdigit()):
        raise MatsListFormatError(token, "is not a number")
    value = int(trimmed)
    if value < 1:
        raise MatsListFormatError(token, "must be positive")
    return value


def parse_optional(text: str | None) -> MatsList | None:
    """Parse a mats list column that may be null or blank."""
    if text is None or not text.strip():
        return None
    return MatsList(text)
