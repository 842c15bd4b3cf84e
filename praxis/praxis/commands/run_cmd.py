"""Replay event batches through a fresh engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..config import load_step_profiles
from ..engine import create_engine
from ..errors import ConfigError, PraxisError
from ..protocol import Diagnostic, Event, StepConfig
from ..snapshot import load_snapshot, save_snapshot
from .targets import load_registry


def load_event_batches(path: Path) -> list[list[Event]]:
    """
    Read events from JSON.

    A list of lists is one batch per step; a flat list of events is a single
    step.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read events {path}: {e}") from e

    if not isinstance(data, list):
        raise ConfigError("Events file must contain a JSON list")

    try:
        if data and all(isinstance(item, list) for item in data):
            return [[Event.from_dict(e) for e in batch] for batch in data]
        return [[Event.from_dict(e) for e in data]]
    except ValueError as e:
        raise ConfigError(f"Invalid event in {path}: {e}") from e


def _load_context(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read context {path}: {e}") from e


def _print_diagnostics(rows: list[tuple[int, Diagnostic]], *, console: Console) -> None:
    table = Table(title="Diagnostics")
    table.add_column("step", justify="right")
    table.add_column("kind", style="magenta", no_wrap=True)
    table.add_column("message")

    for step_no, d in rows:
        style = "red" if d.kind == "rule-error" else "yellow"
        table.add_row(str(step_no), f"[{style}]{d.kind}[/{style}]", d.message)

    console.print(table)


def run_events(
    target: str,
    events_path: Path,
    *,
    context_path: Path | None = None,
    state_path: Path | None = None,
    config_path: Path | None = None,
    profile: str | None = None,
    out: Path | None = None,
    output_json: bool = False,
    fail_on_diagnostics: bool = False,
) -> int:
    """Run every batch in ``events_path`` as one step each and report diagnostics."""
    console = Console()
    err = Console(stderr=True)

    try:
        registry = load_registry(target)
        batches = load_event_batches(events_path)

        step_config = StepConfig()
        if profile:
            if config_path is None:
                raise ConfigError("--profile requires --config")
            step_config = load_step_profiles(config_path).get(profile)

        if state_path is not None:
            prior = load_snapshot(state_path)
            context = _load_context(context_path) if context_path else prior.context
            engine = create_engine(
                context,
                registry,
                initial_facts=list(prior.facts),
                initial_meta=prior.meta,
            )
        else:
            context = _load_context(context_path) if context_path else {}
            engine = create_engine(context, registry)
    except PraxisError as e:
        err.print(str(e), style="bold red")
        return 1

    rows: list[tuple[int, Diagnostic]] = []
    steps: list[dict[str, Any]] = []
    for step_no, batch in enumerate(batches, start=1):
        result = engine.step_with_config(batch, step_config)
        rows.extend((step_no, d) for d in result.diagnostics)
        steps.append(
            {
                "step": step_no,
                "events": len(batch),
                "diagnostics": [d.to_dict() for d in result.diagnostics],
            }
        )

    state = engine.get_state()

    if out:
        save_snapshot(out, state)
        err.print(f"Wrote state snapshot to {out}", style="green")

    if output_json:
        print(json.dumps({"state": state.to_dict(), "steps": steps}, indent=2, ensure_ascii=False))
    else:
        console.print(
            f"Ran [bold]{len(batches)}[/bold] steps: "
            f"{len(state.facts)} facts, {len(rows)} diagnostics"
        )
        if rows:
            _print_diagnostics(rows, console=console)

    if fail_on_diagnostics and rows:
        return 1
    return 0
