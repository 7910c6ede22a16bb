"""Run journal stored in a SQLite file."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from .models import STEP_RUNNING, RunRecord, StepRecord

_SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    run_id TEXT PRIMARY KEY,
    variant TEXT NOT NULL,
    planned_steps TEXT NOT NULL,
    status TEXT NOT NULL,
    started_at TEXT NOT NULL,
    finished_at TEXT
);
CREATE TABLE IF NOT EXISTS steps (
    run_id TEXT NOT NULL REFERENCES runs (run_id),
    step_name TEXT NOT NULL,
    status TEXT NOT NULL,
    resource_id TEXT,
    resource_kind TEXT,
    state TEXT,
    error_kind TEXT,
    error TEXT,
    started_at TEXT NOT NULL,
    finished_at TEXT,
    PRIMARY KEY (run_id, step_name)
);
"""

_STEP_COLUMNS = (
    "resource_id",
    "resource_kind",
    "state",
    "error_kind",
    "error",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _run_from_row(row: sqlite3.Row, steps: list[StepRecord]) -> RunRecord:
    return RunRecord(
        run_id=row["run_id"],
        variant=row["variant"],
        planned_steps=json.loads(row["planned_steps"]),
        status=row["status"],
        started_at=row["started_at"],
        finished_at=row["finished_at"],
        steps=steps,
    )


class SQLiteRunRepository:
    """Journal backed by SQLite; queries run in a worker thread."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.executescript(_SCHEMA)

    def _write(self, query: str, params: tuple) -> None:
        with self._conn:
            self._conn.execute(query, params)

    def _read(self, query: str, params: tuple = ()) -> list[sqlite3.Row]:
        return self._conn.execute(query, params).fetchall()

    async def create_run(
        self, run_id: str, variant: str, planned_steps: Sequence[str]
    ) -> None:
        await asyncio.to_thread(
            self._write,
            "INSERT INTO runs (run_id, variant, planned_steps, status, started_at) "
            "VALUES (?, ?, ?, 'in_progress', ?)",
            (run_id, variant, json.dumps(list(planned_steps)), _now()),
        )

    async def start_step(self, run_id: str, step_name: str) -> None:
        await asyncio.to_thread(
            self._write,
            "INSERT OR IGNORE INTO steps (run_id, step_name, status, started_at) "
            "VALUES (?, ?, ?, ?)",
            (run_id, step_name, STEP_RUNNING, _now()),
        )

    async def finish_step(
        self,
        run_id: str,
        step_name: str,
        status: str,
        *,
        resource_id: Optional[str] = None,
        resource_kind: Optional[str] = None,
        state: Optional[str] = None,
        error_kind: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        assignments = ", ".join(f"{column} = ?" for column in _STEP_COLUMNS)
        await asyncio.to_thread(
            self._write,
            f"UPDATE steps SET status = ?, {assignments}, finished_at = ? "
            "WHERE run_id = ? AND step_name = ? AND status = ?",
            (
                status,
                resource_id,
                resource_kind,
                state,
                error_kind,
                error,
                _now(),
                run_id,
                step_name,
                STEP_RUNNING,
            ),
        )

    async def finish_run(self, run_id: str, status: str) -> None:
        await asyncio.to_thread(
            self._write,
            "UPDATE runs SET status = ?, finished_at = ? WHERE run_id = ?",
            (status, _now(), run_id),
        )

    async def get_run(self, run_id: str) -> Optional[RunRecord]:
        runs = await asyncio.to_thread(
            self._read, "SELECT * FROM runs WHERE run_id = ?", (run_id,)
        )
        if not runs:
            return None
        rows = await asyncio.to_thread(
            self._read,
            "SELECT * FROM steps WHERE run_id = ? ORDER BY rowid",
            (run_id,),
        )
        steps = [
            StepRecord(
                step_name=row["step_name"],
                status=row["status"],
                started_at=row["started_at"],
                finished_at=row["finished_at"],
                **{column: row[column] for column in _STEP_COLUMNS},
            )
            for row in rows
        ]
        return _run_from_row(runs[0], steps)

    async def list_runs(self) -> list[RunRecord]:
        rows = await asyncio.to_thread(
            self._read, "SELECT * FROM runs ORDER BY rowid"
        )
        return [_run_from_row(row, []) for row in rows]
