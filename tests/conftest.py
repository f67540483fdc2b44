"""Pytest fixtures for cutsim-bench tests."""

import sqlite3
from pathlib import Path

import pytest

from cutsim_bench.store import BenchmarkRecord, InMemoryStore, SqliteStore

TESTCASE_DIR = "C:\\bench\\testcases\\"


def csb_run(revision: int, name: str, time: float, memory: float) -> BenchmarkRecord:
    """A player run of a .csb recording."""
    return BenchmarkRecord(
        revision,
        TESTCASE_DIR + name,
        {"player_total_time": time, "memory_peak": memory},
    )


def ini_run(revision: int, name: str, cut: float, draw: float, memory: float) -> BenchmarkRecord:
    """A cutting run of an .ini configuration."""
    return BenchmarkRecord(
        revision,
        TESTCASE_DIR + name,
        {"cutting_time": cut, "draw_time": draw, "memory_peak": memory},
    )


# alpha: time 11 -> 11, memory 100 -> 110
# beta:  time 20 -> 25, memory 200 -> 200
# gamma: only at the second revision
CSB_RUNS = [
    csb_run(800001, "alpha.csb", 10.0, 100.0),
    csb_run(800001, "alpha.csb", 12.0, 100.0),
    csb_run(800002, "alpha.csb", 11.0, 110.0),
    csb_run(800001, "beta.csb", 20.0, 200.0),
    csb_run(800002, "beta.csb", 25.0, 200.0),
    csb_run(800002, "gamma.csb", 5.0, 50.0),
    csb_run(700000, "alpha.csb", 1.0, 1.0),
]

# pocket: cut 4 -> 5, draw 1 -> 1, memory 300 -> 300
# face:   cut 2 -> 1, draw 0 -> 0.5, memory 100 -> 90
# old:    only at the first revision
INI_RUNS = [
    ini_run(800001, "pocket.ini", 4.0, 1.0, 300.0),
    ini_run(800002, "pocket.ini", 5.0, 1.0, 300.0),
    ini_run(800001, "face.ini", 2.0, 0.0, 100.0),
    ini_run(800002, "face.ini", 1.0, 0.5, 90.0),
    ini_run(800001, "old.ini", 1.0, 1.0, 1.0),
]


@pytest.fixture
def memory_store() -> InMemoryStore:
    """In-memory store with both benchmark tables."""
    return InMemoryStore({"processed_csb": CSB_RUNS, "processed_ini": INI_RUNS})


def write_database(path: Path) -> Path:
    """Write CSB_RUNS and INI_RUNS into a SQLite database laid out like the harness output."""
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript("""
            CREATE TABLE processed_csb (
                revision INTEGER,
                config_file TEXT,
                player_total_time REAL,
                memory_peak REAL
            );
            CREATE TABLE processed_ini (
                revision INTEGER,
                config_file TEXT,
                cutting_time REAL,
                draw_time REAL,
                memory_peak REAL
            );
        """)
        conn.executemany(
            "INSERT INTO processed_csb VALUES (?, ?, ?, ?)",
            [
                (r.revision, r.testcase_id, r.values["player_total_time"], r.values["memory_peak"])
                for r in CSB_RUNS
            ],
        )
        conn.executemany(
            "INSERT INTO processed_ini VALUES (?, ?, ?, ?, ?)",
            [
                (
                    r.revision,
                    r.testcase_id,
                    r.values["cutting_time"],
                    r.values["draw_time"],
                    r.values["memory_peak"],
                )
                for r in INI_RUNS
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def sqlite_db(tmp_path: Path) -> Path:
    """SQLite benchmark database with the fixture runs."""
    return write_database(tmp_path / "benchmarks.sqlite")


@pytest.fixture
def sqlite_store(sqlite_db: Path) -> SqliteStore:
    return SqliteStore(sqlite_db)
