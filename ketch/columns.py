"""Column-aligned text output of records, dataclasses and mappings."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO

_PADDING = 4
_MIN_WIDTH = 0
_OMIT = "-"


def _heading(field_name: str) -> str:
    """Turn a field name such as ``unlabeled_data`` into ``UNLABELED DATA``."""
    return " ".join(part.upper() for part in field_name.split("_") if part)


def _columns_of(item: Any) -> list[tuple[str, Any]]:
    if not is_dataclass(item) or isinstance(item, type):
        raise TypeError(f"unsupported kind: {type(item).__name__}")
    return [
        (f.metadata.get("column") or _heading(f.name), getattr(item, f.name))
        for f in fields(item)
    ]


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign = "-" if value < 0 else ""
    number = Decimal(repr(abs(value))).normalize()
    parts = number.as_tuple()
    digits = "".join(str(d) for d in parts.digits)
    exponent = len(digits) - 1 + parts.exponent
    if exponent < -4 or exponent >= 21:
        mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
        exp_sign = "+" if exponent >= 0 else "-"
        return f"{sign}{mantissa}e{exp_sign}{abs(exponent):02d}"
    return sign + format(number, "f")


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(v) for v in value) + "]"
    return str(value)


def _tabulate(text: str) -> str:
    """Align tab-separated cells; the last cell of each line is never padded."""
    rows = [segment.split("\t") for segment in text.split("\n")]
    tail = rows[-1]
    if tail and tail[-1] == "":
        tail.pop()

    widths: dict[tuple[int, int], int] = {}
    column_count = max((len(row) - 1 for row in rows), default=0)
    for column in range(column_count):
        block: list[int] = []
        for index, row in enumerate(rows + [[]]):
            if column < len(row) - 1:
                block.append(index)
                continue
            if block:
                width = max(
                    [_MIN_WIDTH] + [len(rows[i][column]) + _PADDING for i in block]
                )
                widths.update({(i, column): width for i in block})
                block = []

    rendered = []
    for index, row in enumerate(rows):
        if not row:
            rendered.append("")
            continue
        padded = "".join(
            cell.ljust(widths[(index, column)]) for column, cell in enumerate(row[:-1])
        )
        rendered.append(padded + row[-1])
    return "\n".join(rendered)


def marshal(value: Any) -> str:
    """Render a dataclass, a sequence of dataclasses or a mapping as aligned columns.

    Headings come from a field's ``column`` metadata or, failing that, from its
    name spaced and upper-cased. Fields whose column is ``-`` are left out.
    """
    if is_dataclass(value) and not isinstance(value, type):
        records = [_columns_of(value)]
    elif isinstance(value, (list, tuple)):
        records = [_columns_of(item) for item in value]
    elif isinstance(value, Mapping):
        keys = sorted(value, key=str)
        records = [[(str(key), value[key]) for key in keys]]
    else:
        raise TypeError(f"unsupported kind: {type(value).__name__}")

    if not records:
        return ""

    parts: list[str] = []
    first = records[0]
    for index, (tag, _) in enumerate(first):
        if tag == _OMIT:
            continue
        parts.append(tag)
        if index + 1 < len(first):
            parts.append("\t")
    parts.append("\n")

    for row_index, record in enumerate(records):
        for index, (tag, cell) in enumerate(record):
            if tag == _OMIT:
                continue
            parts.append(_format_value(cell))
            if index + 1 < len(record):
                parts.append("\t")
        if row_index + 1 < len(records):
            parts.append("\n")

    return _tabulate("".join(parts))


def write(data: Any, out: TextIO, output_flag: str = "column") -> None:
    """Write ``data`` to ``out`` in the format named by ``output_flag``.

    Every flag currently selects the column format.
    """
    out.write(marshal(data) + "\n")