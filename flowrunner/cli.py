"""Command line interface for running and inspecting flows."""

from __future__ import annotations

import asyncio
import importlib
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from flowrunner import (
    FlowExecutionService,
    FlowStepExecutor,
    get_notifier,
    get_repository,
)
from flowrunner.adapters import InMemoryAdapterCatalog
from flowrunner.config import load_config
from flowrunner.errors import FlowExecutionError, InvalidFlowDefinition
from flowrunner.graph import FlowDefinition, validate_definition

app = typer.Typer(help="CLI for flowrunner integration flows")

# Command groups
flow_app = typer.Typer(help="Commands for flow definitions")
execution_app = typer.Typer(help="Commands for inspecting executions")

app.add_typer(flow_app, name="flow")
app.add_typer(execution_app, name="execution")


@app.callback()
def main() -> None:
    """flowrunner CLI entry point."""
    config = load_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_document(path: Path) -> dict:
    if not path.exists():
        typer.secho(f"File not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    with open(path) as f:
        document = yaml.safe_load(f)
    if not isinstance(document, dict):
        typer.secho("Flow definition must be a mapping", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return document


def _parse_definition(document: dict) -> FlowDefinition:
    try:
        return FlowDefinition.from_document(document)
    except InvalidFlowDefinition as exc:
        typer.secho(f"Invalid flow definition: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@flow_app.command("validate")
def flow_validate(path: Path) -> None:
    """
    Parse a flow definition and report structural problems.

    Example:
        flowrunner flow validate ./flows/orders.yaml
        # Output: Flow definition is valid (5 nodes, 4 edges)
    """
    definition = _parse_definition(_read_document(path))
    warnings = validate_definition(definition)
    edge_count = len(definition.edges or [])
    if not warnings:
        typer.echo(
            f"Flow definition is valid ({len(definition.nodes)} nodes, {edge_count} edges)"
        )
        return
    for warning in warnings:
        typer.secho(f"warning: {warning}", fg=typer.colors.YELLOW)
    if definition.start_node() is None:
        raise typer.Exit(code=1)


@flow_app.command("run")
def flow_run(
    path: Path,
    payload: Optional[str] = typer.Option(None, help="JSON object seeding the context"),
    flow_id: Optional[str] = typer.Option(None, help="Flow id recorded on the execution"),
    triggered_by: str = typer.Option("cli", help="Who triggered the execution"),
    plugin: Optional[List[str]] = typer.Option(
        None, help="Module to import before running; registers adapter executors"
    ),
) -> None:
    """
    Execute a flow definition once and print its step trace.

    Adapter nodes resolve their adapters from the document's optional
    ``adapters`` list; executors for them are registered by ``--plugin``
    modules.

    Example:
        flowrunner flow run ./flows/orders.yaml --payload '{"orderId": 7}'
        flowrunner flow run ./flows/sftp.yaml --plugin acme.adapters
    """
    document = _read_document(path)
    definition = _parse_definition(document)

    try:
        seed = json.loads(payload) if payload else {}
    except json.JSONDecodeError as exc:
        typer.secho(f"Invalid --payload JSON: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not isinstance(seed, dict):
        typer.secho("--payload must be a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    for module_name in plugin or []:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            typer.secho(f"Cannot import plugin {module_name}: {exc}", fg=typer.colors.RED)
            raise typer.Exit(code=1)

    config = load_config()
    repository = get_repository()
    notifier = get_notifier(config=config)
    catalog = InMemoryAdapterCatalog.from_documents(document.get("adapters") or [])
    executor = FlowStepExecutor(
        repository,
        catalog=catalog,
        notifier=notifier,
        max_steps=config.engine.max_steps,
    )
    service = FlowExecutionService(repository, executor, notifier=notifier)

    async def _run():
        execution = await service.create_execution(
            flow_id=flow_id or str(document.get("id") or path.stem),
            flow_name=document.get("name"),
            payload=seed,
            triggered_by=triggered_by,
        )
        error: Optional[FlowExecutionError] = None
        try:
            await service.run(execution, definition)
        except FlowExecutionError as exc:
            error = exc
        steps = await repository.find_steps_by_execution_id(execution.id)
        return execution, steps, error

    execution, steps, error = asyncio.run(_run())
    typer.echo(f"Execution {execution.id}: {execution.status.value}")
    for step in steps:
        line = f"{step.step_order}. {step.step_id} [{step.step_type.value}] {step.step_status.value}"
        if step.error_message:
            line += f" - {step.error_message}"
        typer.echo(line)
    if error is not None:
        typer.secho(f"Execution failed: {error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@execution_app.command("list")
def execution_list() -> None:
    """
    List all executions with their current status.

    Example:
        flowrunner execution list
        # Output: 0b5c...    orders    COMPLETED
    """
    repo = get_repository()
    executions = asyncio.run(repo.list_executions())
    if not executions:
        typer.echo("No executions found")
        return
    for execution in executions:
        typer.echo(f"{execution.id}\t{execution.flow_id}\t{execution.status.value}")


@execution_app.command("show")
def execution_show(execution_id: str) -> None:
    """
    Show an execution and its step-by-step trace.

    Example:
        flowrunner execution show 0b5c...
        # Output: Execution 0b5c... (flow orders): COMPLETED
        #         1. start [ADAPTER_SENDER] COMPLETED (3ms)
    """
    repo = get_repository()

    async def _load():
        execution = await repo.get_execution(execution_id)
        steps = await repo.find_steps_by_execution_id(execution_id) if execution else []
        return execution, steps

    execution, steps = asyncio.run(_load())
    if execution is None:
        typer.echo("Execution not found")
        raise typer.Exit(code=1)
    typer.echo(f"Execution {execution.id} (flow {execution.flow_id}): {execution.status.value}")
    if execution.payload:
        typer.echo(f"Payload: {execution.payload}")
    if execution.error_message:
        typer.echo(f"Error: {execution.error_message}")
    for step in steps:
        duration = f" ({step.duration_ms}ms)" if step.duration_ms is not None else ""
        typer.echo(
            f"{step.step_order}. {step.step_id} [{step.step_type.value}] {step.step_status.value}{duration}"
        )
        if step.error_message:
            typer.echo(f"   error: {step.error_message}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
