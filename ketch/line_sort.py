"""Sorting of table rows."""

from __future__ import annotations


def sort_lines(lines: list[list[str]]) -> None:
    """Sort rows in place, column by column.

    Raises ValueError if the rows do not all have the same number of columns.
    """
    if len(lines) < 2:
        return
    if len({len(line) for line in lines}) != 1:
        raise ValueError("lines don't have same number of columns")
    lines.sort()