"""
State snapshots on disk.

A snapshot is the State wire shape plus a ``$version`` key for the file
format. Version checks live here, not in the engine: the engine stamps its
own protocol version and never looks at an external one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from .errors import SnapshotError
from .protocol import PROTOCOL_VERSION, State

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = "1.0.0"


@dataclass
class SnapshotFinding:
    """A single compatibility finding for a snapshot."""

    level: Literal["error", "warning", "info"]
    message: str

    def __str__(self) -> str:
        return f"{self.level.upper()}: {self.message}"


def _major(version: str) -> str:
    return version.split(".", 1)[0].strip()


def check_protocol_version(data: Any) -> list[SnapshotFinding]:
    """
    Compare a raw snapshot's versions against this build.

    A different major protocol version is an error, any other difference a
    warning.
    """
    findings: list[SnapshotFinding] = []
    if not isinstance(data, dict):
        return [SnapshotFinding("error", "Snapshot must be a JSON object")]

    version = data.get("protocolVersion")
    if not isinstance(version, str) or not version.strip():
        findings.append(SnapshotFinding("error", "Missing protocolVersion"))
    elif version != PROTOCOL_VERSION:
        if _major(version) != _major(PROTOCOL_VERSION):
            findings.append(
                SnapshotFinding(
                    "error",
                    f"Incompatible protocolVersion {version} (engine is {PROTOCOL_VERSION})",
                )
            )
        else:
            findings.append(
                SnapshotFinding(
                    "warning",
                    f"protocolVersion {version} differs from engine {PROTOCOL_VERSION}",
                )
            )

    fmt = data.get("$version")
    if fmt is not None and fmt != SNAPSHOT_FORMAT_VERSION:
        findings.append(
            SnapshotFinding("warning", f"Snapshot format $version {fmt} differs from {SNAPSHOT_FORMAT_VERSION}")
        )
    return findings


def snapshot_dict(state: State) -> dict[str, Any]:
    return {"$version": SNAPSHOT_FORMAT_VERSION, **state.to_dict()}


def save_snapshot(path: Path, state: State) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot_dict(state), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


def load_snapshot(path: Path) -> State:
    """
    Load a snapshot written by ``save_snapshot`` (or any other port).

    Raises SnapshotError for unreadable or malformed files. Version
    mismatches are logged as warnings and the state is still returned.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e

    for finding in check_protocol_version(data):
        logger.warning(f"{path.name}: {finding.message}")

    try:
        return State.from_dict(data)
    except ValueError as e:
        raise SnapshotError(f"Malformed snapshot {path}: {e}") from e
