from __future__ import annotations

import asyncio
import functools
import json
import logging
from pathlib import Path

import click

from agentloop.backends import AgentBackend, ClaudeCodeBackend, CodexBackend
from agentloop.callbacks import CallbackChain, LifecycleCallbacks, LoopBudget, TaskBoard
from agentloop.config import AgentLoopConfig, BackendName, load_config, save_config
from agentloop.engine import AutonomousAgent
from agentloop.reasoning import BackendReasoningClient
from agentloop.tasks import Task

logger = logging.getLogger(__name__)

STATUS_MARKERS = {"new": " ", "running": "~", "finished": "x"}


class EchoCallbacks(LifecycleCallbacks):
    def __init__(self, *, quiet: bool = False) -> None:
        self.quiet = quiet

    def on_task_update(self, task: Task) -> None:
        if self.quiet:
            return
        click.echo(_format_task(task))

    def on_shutdown(self) -> None:
        click.echo("Agent shut down.", err=True)


def _format_task(task: Task) -> str:
    marker = STATUS_MARKERS.get(task.status, "?")
    text = task.output if task.status == "finished" and task.output else task.input
    first_line = text.strip().splitlines()[0] if text.strip() else ""
    return f"[{marker}] {task.id:>3} {task.status:<8} {first_line[:120]}"


def _echo_last_task(board: TaskBoard) -> None:
    if board.tasks:
        click.echo(f"Stopped at: {_format_task(board.tasks[-1])}", err=True)


def _resolve_config_path(config_value: str) -> Path:
    config_path = Path(config_value)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path
    return config_path.resolve()


def _build_backend(config: AgentLoopConfig, backend_name: BackendName) -> AgentBackend:
    working_directory = Path.cwd().resolve()
    if backend_name == "codex":
        return CodexBackend(
            binary=config.backend.codex_binary,
            working_directory=working_directory,
        )
    return ClaudeCodeBackend(
        binary=config.backend.claude_binary,
        working_directory=working_directory,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Autonomous task loop CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("init")
@click.option("--backend", type=click.Choice(["codex", "claude"]), default=None)
@click.option("--config", "config_value", default="agentloop.toml", show_default=True)
def init_command(backend: str | None, config_value: str) -> None:
    config_path = _resolve_config_path(config_value)
    config = load_config(config_path)
    if backend:
        config.backend.primary = backend  # type: ignore[assignment]
    save_config(config_path, config)
    click.echo(f"Config: {config_path}")
    click.echo(f"Backend: {config.backend.primary}")


@cli.command("run")
@click.argument("goal")
@click.option("--name", default=None, help="Agent name (defaults to the configured name).")
@click.option("--max-loops", type=int, default=None, help="Abort after this many loops.")
@click.option("--backend", type=click.Choice(["codex", "claude"]), default=None)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the queue as JSON.")
@click.option("--config", "config_value", default="agentloop.toml", show_default=True)
def run_command(
    goal: str,
    name: str | None,
    max_loops: int | None,
    backend: str | None,
    as_json: bool,
    config_value: str,
) -> None:
    if not goal.strip():
        raise click.BadParameter("Goal must not be blank.", param_hint="GOAL")

    config = load_config(_resolve_config_path(config_value))
    backend_name: BackendName = backend or config.backend.primary  # type: ignore[assignment]
    agent_name = (name or config.agent.name).strip()
    budget = max_loops if max_loops is not None else config.agent.max_loops

    board = TaskBoard()
    callbacks = CallbackChain(LoopBudget(budget), board, EchoCallbacks(quiet=as_json))
    agent = AutonomousAgent(
        agent_name,
        goal.strip(),
        callbacks,
        config.model,
        functools.partial(BackendReasoningClient, _build_backend(config, backend_name)),
    )

    try:
        asyncio.run(agent.run())
    except RuntimeError as exc:
        _echo_last_task(board)
        raise click.ClickException(str(exc)) from exc
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down agent %s", agent.name)
        agent.shutdown()
        _echo_last_task(board)
        raise click.Abort() from None

    if as_json:
        payload = {
            "name": agent.name,
            "goal": agent.goal,
            "tasks": [task.to_dict() for task in agent.task_queue],
        }
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    finished = sum(1 for task in agent.task_queue if task.status == "finished")
    click.echo(f"Goal complete: {agent.goal}")
    click.echo(f"Tasks: {finished}/{len(agent.task_queue)}")


@cli.command("backend")
@click.argument("backend_name", type=click.Choice(["codex", "claude"]))
@click.option("--config", "config_value", default="agentloop.toml", show_default=True)
def backend_command(backend_name: str, config_value: str) -> None:
    config_path = _resolve_config_path(config_value)
    config = load_config(config_path)
    config.backend.primary = backend_name  # type: ignore[assignment]
    save_config(config_path, config)
    click.echo(f"Primary backend set to {backend_name}")
