"""Snapshot compatibility checks."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from ..protocol import State
from ..snapshot import SnapshotFinding, check_protocol_version


def run_snapshot_check(path: Path, *, output_json: bool = False) -> int:
    err = Console(stderr=True)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        err.print(f"Cannot read snapshot {path}: {e}", style="bold red")
        return 1

    findings = check_protocol_version(data)
    if isinstance(data, dict):
        try:
            state = State.from_dict(data)
        except ValueError as e:
            findings.append(SnapshotFinding("error", f"Malformed state: {e}"))
        else:
            findings.append(SnapshotFinding("info", f"{len(state.facts)} facts"))

    errors = [f for f in findings if f.level == "error"]

    if output_json:
        payload = {
            "path": str(path),
            "ok": not errors,
            "findings": [{"level": f.level, "message": f.message} for f in findings],
        }
        print(json.dumps(payload, indent=2))
    else:
        console = Console()
        styles = {"error": "bold red", "warning": "yellow", "info": "dim"}
        for f in findings:
            console.print(str(f), style=styles[f.level])
        if not errors:
            console.print(f"{path.name}: OK", style="green")

    return 1 if errors else 0
