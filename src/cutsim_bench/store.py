"""
Measurement store access.

The reporting core only needs two read operations from wherever benchmark
runs are recorded:

- ``fetch``: raw runs of a table, filtered by revision and testcase
- ``revisions``: distinct revisions present in a table

:class:`SqliteStore` reads the SQLite database the benchmark harness writes
(one ``processed_<category>`` table per category, one row per run, keyed by
``revision`` and ``config_file``). :class:`InMemoryStore` serves records held
in memory and backs the tests.
"""

from __future__ import annotations

import logging
import math
import re
import sqlite3
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .exceptions import StorageError, UnsupportedCategory
from .naming import testcase_matches

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class BenchmarkRecord:
    """One benchmark run.

    Attributes:
        revision: Revision of the measured engine
        testcase_id: Raw testcase identifier (storage path, not normalized)
        values: Measured value per metric column; None (or a missing key)
            when the run did not record the metric
    """

    revision: int
    testcase_id: str
    values: Mapping[str, float | None] = field(default_factory=dict)

    def recorded(self, metric: str) -> bool:
        """Whether the run has a value for ``metric``. An explicit NaN counts."""
        return self.values.get(metric) is not None

    def value(self, metric: str) -> float:
        """Value of a metric, NaN when the run did not record it."""
        v = self.values.get(metric)
        return math.nan if v is None else float(v)


class MeasurementStore(Protocol):
    """Read-only access to recorded benchmark runs."""

    def fetch(
        self,
        table: str,
        metrics: Sequence[str],
        revision: int | None = None,
        revision_range: tuple[int, int] | None = None,
        testcase_filter: str | None = None,
    ) -> list[BenchmarkRecord]:
        """Return the runs of ``table`` matching the filters.

        Args:
            table: Measurement table
            metrics: Metric columns to load
            revision: Only runs of this revision
            revision_range: Only runs with ``low <= revision <= high``
            testcase_filter: SQL LIKE pattern on the raw testcase identifier
        """
        ...

    def revisions(self, table: str, floor: int = 0) -> list[int]:
        """Distinct revisions ``>= floor`` in ``table``, ascending."""
        ...


def _check_identifier(kind: str, name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise UnsupportedCategory(
            f"Invalid {kind} name: {name!r}",
            context={kind: name},
        )
    return name


def _in_range(revision: int, revision_range: tuple[int, int] | None) -> bool:
    if revision_range is None:
        return True
    low, high = revision_range
    return low <= revision <= high


class InMemoryStore:
    """
    Measurement store over records held in memory.

    Example::

        store = InMemoryStore({
            "processed_ini": [
                BenchmarkRecord(1, "a.ini", {"cutting_time": 10.0}),
                BenchmarkRecord(2, "a.ini", {"cutting_time": 11.0}),
            ],
        })
        store.revisions("processed_ini")  # [1, 2]
    """

    def __init__(self, tables: Mapping[str, Iterable[BenchmarkRecord]] | None = None):
        self._tables: dict[str, tuple[BenchmarkRecord, ...]] = {
            name: tuple(records) for name, records in (tables or {}).items()
        }

    def _records(self, table: str) -> tuple[BenchmarkRecord, ...]:
        try:
            return self._tables[table]
        except KeyError:
            raise StorageError(
                f"No such table: {table}",
                context={"table": table, "available": sorted(self._tables)},
            ) from None

    def fetch(
        self,
        table: str,
        metrics: Sequence[str],
        revision: int | None = None,
        revision_range: tuple[int, int] | None = None,
        testcase_filter: str | None = None,
    ) -> list[BenchmarkRecord]:
        records = []
        for record in self._records(table):
            if revision is not None and record.revision != revision:
                continue
            if not _in_range(record.revision, revision_range):
                continue
            if testcase_filter is not None and not testcase_matches(
                record.testcase_id, testcase_filter
            ):
                continue
            records.append(
                BenchmarkRecord(
                    record.revision,
                    record.testcase_id,
                    {m: record.values.get(m) for m in metrics},
                )
            )
        return records

    def revisions(self, table: str, floor: int = 0) -> list[int]:
        return sorted({r.revision for r in self._records(table) if r.revision >= floor})


class SqliteStore:
    """
    Measurement store backed by the benchmark SQLite database.

    The database is opened read-only with a fresh connection per call, so one
    instance can serve concurrent request threads.

    Example::

        store = SqliteStore("benchmarks.sqlite")
        revisions = store.revisions("processed_csb", floor=800_000)
        runs = store.fetch("processed_ini", ["cutting_time"], revision=revisions[-1])
    """

    def __init__(self, db_path: Path | str):
        """
        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a read-only connection to the database."""
        if not self.db_path.is_file():
            raise StorageError(
                "Benchmark database not found",
                context={"database": str(self.db_path)},
                suggestions=[
                    "Check [database] path in your cutsim-bench.toml",
                    "Pass --db with the path to the benchmark database",
                ],
            )
        try:
            conn = sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise StorageError(
                f"Cannot open benchmark database: {e}",
                context={"database": str(self.db_path)},
            ) from e
        try:
            yield conn
        finally:
            conn.close()

    def _query(self, sql: str, params: Sequence[object]) -> list[tuple]:
        with self._connect() as conn:
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Benchmark query failed: {e}",
                    context={"database": str(self.db_path), "query": sql},
                ) from e

    def fetch(
        self,
        table: str,
        metrics: Sequence[str],
        revision: int | None = None,
        revision_range: tuple[int, int] | None = None,
        testcase_filter: str | None = None,
    ) -> list[BenchmarkRecord]:
        _check_identifier("table", table)
        columns = [_check_identifier("column", m) for m in metrics]

        where = []
        params: list[object] = []
        if revision is not None:
            where.append("revision = ?")
            params.append(revision)
        if revision_range is not None:
            where.append("revision >= ? AND revision <= ?")
            params.extend(revision_range)
        if testcase_filter is not None:
            where.append("config_file LIKE ?")
            params.append(testcase_filter)

        sql = f"SELECT revision, config_file{''.join(', ' + c for c in columns)} FROM {table}"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY revision"

        rows = self._query(sql, params)
        logger.debug("Fetched %d runs from %s", len(rows), table)
        return [
            BenchmarkRecord(
                int(row[0]),
                row[1],
                {c: None if v is None else float(v) for c, v in zip(columns, row[2:])},
            )
            for row in rows
        ]

    def revisions(self, table: str, floor: int = 0) -> list[int]:
        _check_identifier("table", table)
        rows = self._query(
            f"SELECT DISTINCT revision FROM {table} WHERE revision >= ? ORDER BY revision",
            (floor,),
        )
        return [int(row[0]) for row in rows]
