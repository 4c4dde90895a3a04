"""Table output for command results, as text, CSV or TSV."""

from __future__ import annotations

import csv
import dataclasses
import json
import sys
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence, TextIO

from tabulate import tabulate

from restgate.commands import Fn

FORMAT_TEXT = "text"
FORMAT_CSV = "csv"
FORMAT_TSV = "tsv"


def _row(value: Any) -> dict[str, Any]:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"cannot write {type(value).__name__} as a table row")


def _rows(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, (list, tuple)):
        return [_row(item) for item in value]
    return [_row(value)]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


class TableWriter:
    """Writes records (mappings or dataclass instances) as a table to a stream."""

    def __init__(
        self,
        stream: TextIO,
        format: str = FORMAT_TEXT,
        header: bool = True,
        owns_stream: bool = False,
    ) -> None:
        if format not in (FORMAT_TEXT, FORMAT_CSV, FORMAT_TSV):
            raise ValueError(f"unknown table format {format!r}")
        self._stream = stream
        self.format = format
        self.header = header
        self._owns_stream = owns_stream

    @property
    def output(self) -> TextIO:
        """The stream the table is written to."""
        return self._stream

    def write(self, value: Any) -> None:
        """Write one record, or a list of records, as a table."""
        rows = _rows(value)
        if not rows:
            return
        columns = list(dict.fromkeys(key for row in rows for key in row))
        cells = [[_cell(row.get(column)) for column in columns] for row in rows]
        if self.format == FORMAT_TEXT:
            text = tabulate(
                cells,
                headers=columns if self.header else (),
                tablefmt="simple",
                disable_numparse=True,
            )
            self._stream.write(text + "\n")
            return
        delimiter = "\t" if self.format == FORMAT_TSV else ","
        writer = csv.writer(self._stream, delimiter=delimiter, lineterminator="\n")
        if self.header:
            writer.writerow(columns)
        writer.writerows(cells)

    def close(self) -> None:
        """Close the stream if the writer opened it."""
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "TableWriter":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def new_table_writer(
    out_path: str = "", out_ext: str = "", stream: Optional[TextIO] = None
) -> TableWriter:
    """Create a writer to the named file, or to stream (standard output by default).

    The extension picks the format: "csv", "tsv", or text for anything else.
    """
    ext = out_ext.lower()
    fmt = ext if ext in (FORMAT_CSV, FORMAT_TSV) else FORMAT_TEXT
    if out_path:
        handle = open(out_path, "w", encoding="utf-8", newline="")
        return TableWriter(handle, fmt, owns_stream=True)
    return TableWriter(stream if stream is not None else sys.stdout, fmt)


def run(fn: Fn, writer: TableWriter, args: Sequence[str]) -> Any:
    """Call a command function with the writer and its arguments."""
    if fn.call is None:
        raise ValueError(f"function {fn.name!r} has nothing to call")
    return fn.call(writer, list(args))