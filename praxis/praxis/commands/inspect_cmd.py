"""Registry inspection: stats, schema and graph exports."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import PraxisError
from ..introspection import RegistryIntrospector
from .targets import load_registry


def _print_stats(introspector: RegistryIntrospector, *, console: Console) -> None:
    stats = introspector.get_stats()
    registry = introspector.registry

    console.print(
        f"[bold]{stats.rule_count}[/bold] rules, "
        f"[bold]{stats.constraint_count}[/bold] constraints, "
        f"[bold]{stats.module_count}[/bold] modules"
    )

    table = Table(title="Registry")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("type", style="magenta")
    table.add_column("description")

    for rule in registry.get_all_rules():
        table.add_row(rule.id, "rule", rule.description)
    for constraint in registry.get_all_constraints():
        table.add_row(constraint.id, "constraint", constraint.description)

    console.print(table)


def run_inspect(
    target: str,
    *,
    fmt: str = "stats",
    out: Path | None = None,
    query: str | None = None,
) -> int:
    """Print or write a view of the registry named by ``target``."""
    err = Console(stderr=True)

    try:
        registry = load_registry(target)
    except PraxisError as e:
        err.print(str(e), style="bold red")
        return 1

    introspector = RegistryIntrospector(registry)

    if query:
        rules = introspector.search_rules(query)
        constraints = introspector.search_constraints(query)
        payload = {
            "query": query,
            "rules": [r.id for r in rules],
            "constraints": [c.id for c in constraints],
        }
        print(json.dumps(payload, indent=2))
        return 0

    if fmt == "stats":
        if out:
            rich_console = Console(record=True)
            _print_stats(introspector, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            err.print(f"Wrote registry stats to {out}", style="green")
        else:
            _print_stats(introspector, console=Console())
        return 0

    text: str
    if fmt == "json":
        text = json.dumps(introspector.get_stats().to_dict(), indent=2) + "\n"
    elif fmt == "schema":
        text = json.dumps(introspector.generate_schema(), indent=2) + "\n"
    elif fmt == "graph":
        text = json.dumps(introspector.generate_graph().to_dict(), indent=2) + "\n"
    elif fmt == "dot":
        text = introspector.export_dot() + "\n"
    elif fmt == "mermaid":
        text = introspector.export_mermaid() + "\n"
    else:
        err.print(f"Unknown format: {fmt}", style="bold red")
        return 1

    if out:
        out.write_text(text, encoding="utf-8")
        err.print(f"Wrote {fmt} output to {out}", style="green")
    else:
        print(text, end="")

    return 0
