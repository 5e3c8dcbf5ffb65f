"""PostgreSQL implementation of the execution repository."""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from .models import Execution, ExecutionStep
from .repository import ExecutionRepository


def _json(value: Any) -> Any:
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return value


class PostgresExecutionRepository(ExecutionRepository):
    """Persist execution state using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS executions (
                id TEXT PRIMARY KEY,
                flow_id TEXT NOT NULL,
                flow_name TEXT,
                payload JSONB,
                correlation_id TEXT,
                triggered_by TEXT,
                status TEXT NOT NULL,
                started_at TIMESTAMPTZ,
                completed_at TIMESTAMPTZ,
                duration_ms BIGINT,
                error_message TEXT
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS execution_steps (
                id TEXT PRIMARY KEY,
                execution_id TEXT NOT NULL REFERENCES executions(id),
                step_id TEXT NOT NULL,
                step_name TEXT NOT NULL,
                step_type TEXT NOT NULL,
                step_order INTEGER NOT NULL,
                step_status TEXT NOT NULL,
                started_at TIMESTAMPTZ,
                completed_at TIMESTAMPTZ,
                duration_ms BIGINT,
                input_data JSONB,
                output_data JSONB,
                error_message TEXT,
                correlation_id TEXT
            )
            """
        )

    @staticmethod
    def _row_to_execution(row: Any) -> Execution:
        return Execution(
            id=row["id"],
            flow_id=row["flow_id"],
            flow_name=row["flow_name"],
            payload=_json(row["payload"]) or {},
            correlation_id=row["correlation_id"],
            triggered_by=row["triggered_by"],
            status=row["status"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            duration_ms=row["duration_ms"],
            error_message=row["error_message"],
        )

    @staticmethod
    def _row_to_step(row: Any) -> ExecutionStep:
        return ExecutionStep(
            id=row["id"],
            execution_id=row["execution_id"],
            step_id=row["step_id"],
            step_name=row["step_name"],
            step_type=row["step_type"],
            step_order=row["step_order"],
            step_status=row["step_status"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            duration_ms=row["duration_ms"],
            input_data=_json(row["input_data"]) or {},
            output_data=_json(row["output_data"]),
            error_message=row["error_message"],
            correlation_id=row["correlation_id"],
        )

    # ------------------------------------------------------------------
    async def create_execution(self, execution: Execution) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO executions (id, flow_id, flow_name, payload, correlation_id,
                    triggered_by, status, started_at, completed_at, duration_ms, error_message)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                """,
                execution.id,
                execution.flow_id,
                execution.flow_name,
                json.dumps(execution.payload, default=str),
                execution.correlation_id,
                execution.triggered_by,
                execution.status.value,
                execution.started_at,
                execution.completed_at,
                execution.duration_ms,
                execution.error_message,
            )
        finally:
            await conn.close()

    async def update_execution(self, execution: Execution) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                UPDATE executions
                SET status = $1, started_at = $2, completed_at = $3, duration_ms = $4,
                    error_message = $5, payload = $6
                WHERE id = $7
                """,
                execution.status.value,
                execution.started_at,
                execution.completed_at,
                execution.duration_ms,
                execution.error_message,
                json.dumps(execution.payload, default=str),
                execution.id,
            )
        finally:
            await conn.close()

    async def get_execution(self, execution_id: str) -> Execution | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT * FROM executions WHERE id = $1", execution_id
            )
        finally:
            await conn.close()
        return self._row_to_execution(row) if row else None

    async def list_executions(self) -> list[Execution]:
        conn = await self._connect()
        try:
            rows = await conn.fetch("SELECT * FROM executions ORDER BY started_at")
        finally:
            await conn.close()
        return [self._row_to_execution(r) for r in rows]

    async def save_step(self, step: ExecutionStep) -> str:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO execution_steps (id, execution_id, step_id, step_name, step_type,
                    step_order, step_status, started_at, completed_at, duration_ms,
                    input_data, output_data, error_message, correlation_id)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
                """,
                step.id,
                step.execution_id,
                step.step_id,
                step.step_name,
                step.step_type.value,
                step.step_order,
                step.step_status.value,
                step.started_at,
                step.completed_at,
                step.duration_ms,
                json.dumps(step.input_data, default=str),
                json.dumps(step.output_data, default=str)
                if step.output_data is not None
                else None,
                step.error_message,
                step.correlation_id,
            )
        finally:
            await conn.close()
        return step.id

    async def update_step(self, step: ExecutionStep) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                UPDATE execution_steps
                SET step_status = $1, completed_at = $2, duration_ms = $3,
                    output_data = $4, error_message = $5
                WHERE id = $6
                """,
                step.step_status.value,
                step.completed_at,
                step.duration_ms,
                json.dumps(step.output_data, default=str)
                if step.output_data is not None
                else None,
                step.error_message,
                step.id,
            )
        finally:
            await conn.close()

    async def find_steps_by_execution_id(
        self, execution_id: str
    ) -> list[ExecutionStep]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT * FROM execution_steps WHERE execution_id = $1 ORDER BY step_order",
                execution_id,
            )
        finally:
            await conn.close()
        return [self._row_to_step(r) for r in rows]
