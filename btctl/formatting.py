"""Pretty (table) and terse (slash-delimited) renderers for device listings."""
from __future__ import annotations

import io
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple, TypeVar

from rich.console import Console
from rich.table import Table
from rich.text import Text

C = TypeVar("C")

TERSE_DELIMITER = "/"
_RENDER_WIDTH = 512


class OutputShape(Enum):
    PRETTY = "pretty"
    TERSE = "terse"


def resolve_output(
    columns: Optional[Sequence[C]],
    values: Optional[Sequence[C]],
    defaults: Sequence[C],
) -> Tuple[OutputShape, Tuple[C, ...]]:
    """Pick the output shape and keys from the ``--columns``/``--values`` flags.

    ``--columns`` wins over ``--values``; an empty selection means the
    defaults in the chosen shape.
    """
    if columns is not None:
        return OutputShape.PRETTY, tuple(columns or defaults)
    if values is not None:
        return OutputShape.TERSE, tuple(values or defaults)
    return OutputShape.PRETTY, tuple(defaults)


def _cells(records: Iterable[Any], columns: Sequence[Any]) -> Iterable[list[str]]:
    for record in records:
        yield [column.cell(record) for column in columns]


def to_pretty(records: Iterable[Any], columns: Sequence[Any]) -> str:
    """Render records as a borderless, space-aligned table with a header row.

    Each column must provide ``header`` and ``cell(record)``.
    """
    table = Table(box=None, show_edge=False, pad_edge=False, header_style=None, padding=(0, 3, 0, 0))
    for column in columns:
        table.add_column(column.header, no_wrap=True)
    for row in _cells(records, columns):
        table.add_row(*(Text(value) for value in row))

    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=_RENDER_WIDTH,
        color_system=None,
        force_terminal=False,
        highlight=False,
        emoji=False,
        markup=False,
    )
    console.print(table)
    return "".join(line.rstrip() + "\n" for line in buffer.getvalue().splitlines())


def to_terse(records: Iterable[Any], columns: Sequence[Any]) -> str:
    """Render one ``/``-joined line per record."""
    return "".join(TERSE_DELIMITER.join(row) + "\n" for row in _cells(records, columns))


def render(shape: OutputShape, records: Iterable[Any], columns: Sequence[Any]) -> str:
    renderer: Callable[[Iterable[Any], Sequence[Any]], str] = (
        to_pretty if shape is OutputShape.PRETTY else to_terse
    )
    return renderer(records, columns)


__all__ = [
    "OutputShape",
    "TERSE_DELIMITER",
    "render",
    "resolve_output",
    "to_pretty",
    "to_terse",
]
