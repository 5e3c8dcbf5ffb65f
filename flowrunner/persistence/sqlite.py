"""SQLite implementation of the execution repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .models import Execution, ExecutionStep
from .repository import ExecutionRepository


def _dump(value: Any) -> Optional[str]:
    return json.dumps(value, default=str) if value is not None else None


def _load(value: Optional[str]) -> Any:
    return json.loads(value) if value else None


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteExecutionRepository(ExecutionRepository):
    """Persist execution state using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS executions (
                id TEXT PRIMARY KEY,
                flow_id TEXT NOT NULL,
                flow_name TEXT,
                payload TEXT,
                correlation_id TEXT,
                triggered_by TEXT,
                status TEXT NOT NULL,
                started_at TEXT,
                completed_at TEXT,
                duration_ms INTEGER,
                error_message TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS execution_steps (
                id TEXT PRIMARY KEY,
                execution_id TEXT NOT NULL,
                step_id TEXT NOT NULL,
                step_name TEXT NOT NULL,
                step_type TEXT NOT NULL,
                step_order INTEGER NOT NULL,
                step_status TEXT NOT NULL,
                started_at TEXT,
                completed_at TEXT,
                duration_ms INTEGER,
                input_data TEXT,
                output_data TEXT,
                error_message TEXT,
                correlation_id TEXT
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _row_to_execution(row: sqlite3.Row) -> Execution:
        return Execution(
            id=row["id"],
            flow_id=row["flow_id"],
            flow_name=row["flow_name"],
            payload=_load(row["payload"]) or {},
            correlation_id=row["correlation_id"],
            triggered_by=row["triggered_by"],
            status=row["status"],
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
            duration_ms=row["duration_ms"],
            error_message=row["error_message"],
        )

    @staticmethod
    def _row_to_step(row: sqlite3.Row) -> ExecutionStep:
        return ExecutionStep(
            id=row["id"],
            execution_id=row["execution_id"],
            step_id=row["step_id"],
            step_name=row["step_name"],
            step_type=row["step_type"],
            step_order=row["step_order"],
            step_status=row["step_status"],
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
            duration_ms=row["duration_ms"],
            input_data=_load(row["input_data"]) or {},
            output_data=_load(row["output_data"]),
            error_message=row["error_message"],
            correlation_id=row["correlation_id"],
        )

    # ------------------------------------------------------------------
    # Repository API
    async def create_execution(self, execution: Execution) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO executions (id, flow_id, flow_name, payload, correlation_id,
                triggered_by, status, started_at, completed_at, duration_ms, error_message)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            execution.id,
            execution.flow_id,
            execution.flow_name,
            _dump(execution.payload),
            execution.correlation_id,
            execution.triggered_by,
            execution.status.value,
            _ts(execution.started_at),
            _ts(execution.completed_at),
            execution.duration_ms,
            execution.error_message,
        )

    async def update_execution(self, execution: Execution) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE executions
            SET status = ?, started_at = ?, completed_at = ?, duration_ms = ?,
                error_message = ?, payload = ?
            WHERE id = ?
            """,
            execution.status.value,
            _ts(execution.started_at),
            _ts(execution.completed_at),
            execution.duration_ms,
            execution.error_message,
            _dump(execution.payload),
            execution.id,
        )

    async def get_execution(self, execution_id: str) -> Execution | None:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT * FROM executions WHERE id = ?", execution_id
        )
        return self._row_to_execution(row) if row else None

    async def list_executions(self) -> list[Execution]:
        rows = await asyncio.to_thread(
            self._fetchall, "SELECT * FROM executions ORDER BY started_at"
        )
        return [self._row_to_execution(r) for r in rows]

    async def save_step(self, step: ExecutionStep) -> str:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO execution_steps (id, execution_id, step_id, step_name, step_type,
                step_order, step_status, started_at, completed_at, duration_ms,
                input_data, output_data, error_message, correlation_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            step.id,
            step.execution_id,
            step.step_id,
            step.step_name,
            step.step_type.value,
            step.step_order,
            step.step_status.value,
            _ts(step.started_at),
            _ts(step.completed_at),
            step.duration_ms,
            _dump(step.input_data),
            _dump(step.output_data),
            step.error_message,
            step.correlation_id,
        )
        return step.id

    async def update_step(self, step: ExecutionStep) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE execution_steps
            SET step_status = ?, completed_at = ?, duration_ms = ?, output_data = ?,
                error_message = ?
            WHERE id = ?
            """,
            step.step_status.value,
            _ts(step.completed_at),
            step.duration_ms,
            _dump(step.output_data),
            step.error_message,
            step.id,
        )

    async def find_steps_by_execution_id(
        self, execution_id: str
    ) -> list[ExecutionStep]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT * FROM execution_steps WHERE execution_id = ? ORDER BY step_order",
            execution_id,
        )
        return [self._row_to_step(r) for r in rows]
