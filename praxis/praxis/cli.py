"""CLI entrypoint for praxis."""

import logging
import sys
from pathlib import Path

import click
from rich.logging import RichHandler

from . import __version__


@click.group()
@click.version_option(__version__, prog_name="praxis")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    show_default=True,
    help="Logging level for engine diagnostics",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """praxis - deterministic logic engine.

    Inspect rule registries and replay events through the engine.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
    ctx.obj["log_level"] = log_level


@cli.command()
@click.argument("target")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["stats", "json", "schema", "graph", "dot", "mermaid"]),
    default="stats",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option("--search", "query", type=str, default=None, metavar="TEXT", help="List rule/constraint ids matching TEXT")
def inspect(target: str, fmt: str, out: Path | None, query: str | None) -> None:
    """Inspect the registry named by TARGET (package.module:attribute).

    TARGET may name a Registry, a PraxisModule, or a zero-argument factory
    returning one.

    Examples:

        praxis inspect praxis.samples:counter_registry

        praxis inspect praxis.samples:counter_module --format dot --out registry.dot
    """
    from .commands.inspect_cmd import run_inspect

    exit_code = run_inspect(target, fmt=fmt, out=out, query=query)
    sys.exit(exit_code)


@cli.command()
@click.argument("target")
@click.argument(
    "events",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--context",
    "context_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with the initial context",
)
@click.option(
    "--state",
    "state_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Resume from a state snapshot",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Step profiles file (TOML or YAML)",
)
@click.option("--profile", type=str, default=None, help="Step profile to use from --config")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write final state snapshot")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option(
    "--fail-on-diagnostics",
    is_flag=True,
    help="Exit with status 1 if any step produced diagnostics",
)
def run(
    target: str,
    events: Path,
    context_path: Path | None,
    state_path: Path | None,
    config_path: Path | None,
    profile: str | None,
    out: Path | None,
    output_json: bool,
    fail_on_diagnostics: bool,
) -> None:
    """Replay EVENTS through a fresh engine built from TARGET.

    EVENTS is a JSON list of event batches (one step per batch) or a flat
    list of events (a single step).
    """
    from .commands.run_cmd import run_events

    if profile and config_path is None:
        raise click.BadParameter("--profile requires --config", param_hint="--profile")

    exit_code = run_events(
        target,
        events,
        context_path=context_path,
        state_path=state_path,
        config_path=config_path,
        profile=profile,
        out=out,
        output_json=output_json,
        fail_on_diagnostics=fail_on_diagnostics,
    )
    sys.exit(exit_code)


@cli.group()
def snapshot() -> None:
    """State snapshot utilities."""


@snapshot.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output findings as JSON")
def snapshot_check(path: Path, output_json: bool) -> None:
    """Check a snapshot's shape and protocol version."""
    from .commands.snapshot_cmd import run_snapshot_check

    exit_code = run_snapshot_check(path, output_json=output_json)
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
