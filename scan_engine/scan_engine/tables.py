"""Reporting tables that detection results are written into.

A :class:`DataTable` is an append-only, thread-safe sink of pydantic rows.
Two tables are produced by a scan:

* :class:`DatabaseColumnsUsed`: one :class:`ColumnUsedRow` per column fact;
* :class:`DatabaseQueries`: one :class:`QueryRow` per detected query.
"""

from __future__ import annotations

import csv
import enum
import threading
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

RowT = TypeVar("RowT", bound=BaseModel)


class Operation(str, enum.Enum):
    """The data-manipulation operation a column fact was read from."""

    SELECT = "SELECT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    INSERT = "INSERT"


class ColumnUsedRow(BaseModel):
    """One column touched by one query."""

    model_config = ConfigDict(frozen=True)

    source_path: str | None = Field(
        default=None,
        title="Source path",
        description="The path to the source file containing the query.",
    )
    line_number: int | None = Field(
        default=None,
        title="Line number",
        description="1-based line of the node holding the query, when known.",
    )
    commit_hash: str | None = Field(
        default=None,
        title="Commit hash",
        description="HEAD commit of the repository the source was scanned from.",
    )
    operation: Operation = Field(
        title="Operation",
        description="The SQL operation performed on the column.",
    )
    table: str = Field(
        title="Table",
        description="The primary table the operation targets.",
    )
    column: str | None = Field(
        default=None,
        title="Column",
        description="The column read or written; empty for whole-row operations such as DELETE.",
    )


class QueryRow(BaseModel):
    """The full text of one detected query."""

    model_config = ConfigDict(frozen=True)

    source_path: str | None = Field(
        default=None,
        title="Source path",
        description="The path to the source file.",
    )
    query: str = Field(
        title="Query",
        description="The text of the query.",
    )


class DataTable(Generic[RowT]):
    """Append-only collection of rows of one model type.

    Parameters
    ----------
    row_type:
        The pydantic model every inserted row must be an instance of.
    name:
        Human-readable table name.
    description:
        What the rows represent.
    """

    def __init__(self, row_type: type[RowT], name: str, description: str) -> None:
        self.row_type = row_type
        self.name = name
        self.description = description
        self._rows: list[RowT] = []
        self._lock = threading.Lock()

    def insert_row(self, row: RowT) -> None:
        if not isinstance(row, self.row_type):
            raise TypeError(f"{self.name} expects {self.row_type.__name__}, got {type(row).__name__}")
        with self._lock:
            self._rows.append(row)

    def rows(self) -> list[RowT]:
        """Snapshot of the rows inserted so far, in insertion order."""
        with self._lock:
            return list(self._rows)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def to_csv(self, path: Path) -> int:
        """Write the rows to *path* with one column per model field.  Returns the row count."""
        rows = self.rows()
        fields = list(self.row_type.model_fields)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=fields)
            writer.writeheader()
            for row in rows:
                writer.writerow(row.model_dump(mode="json"))
        return len(rows)

    def to_jsonl(self, path: Path) -> int:
        """Write the rows to *path* as JSON lines.  Returns the row count."""
        rows = self.rows()
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as fh:
            for row in rows:
                fh.write(row.model_dump_json() + "\n")
        return len(rows)


class DatabaseColumnsUsed(DataTable[ColumnUsedRow]):
    def __init__(self) -> None:
        super().__init__(
            ColumnUsedRow,
            "Database columns used",
            "Shows which database columns are read or written by detected SQL.",
        )


class DatabaseQueries(DataTable[QueryRow]):
    def __init__(self) -> None:
        super().__init__(
            QueryRow,
            "SQL queries",
            "Shows matching SQL queries.",
        )
