from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .protocol import StepConfig


@dataclass(frozen=True)
class StepProfiles:
    """Named step configurations loaded from a config file."""

    profiles: dict[str, StepConfig] = field(default_factory=dict)
    source: Path | None = None

    def get(self, name: str) -> StepConfig:
        config = self.profiles.get(name)
        if config is None:
            known = ", ".join(sorted(self.profiles)) or "none"
            raise ConfigError(f"Unknown step profile {name!r} (known: {known})")
        return config

    def names(self) -> list[str]:
        return list(self.profiles)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _id_list(raw: Any, *, where: str) -> tuple[str, ...] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ConfigError(f"{where} must be a list of ids")
    ids = tuple(str(x).strip() for x in raw)
    if any(not x for x in ids):
        raise ConfigError(f"{where} contains an empty id")
    return ids


def _read(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    suffix = path.suffix.lower()
    try:
        if suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(text) or {}
        else:
            import tomllib

            data = tomllib.loads(text)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a table/mapping at top level")
    return data


def load_step_profiles(path: Path) -> StepProfiles:
    """
    Load named step profiles from TOML (default) or YAML (``.yml``/``.yaml``).

    ``[defaults]`` lists apply to every profile that leaves them out; a list
    left out everywhere means "all registered ids".
    """
    data = _read(path)

    defaults = _coerce_dict(data.get("defaults"))
    default_rules = _id_list(defaults.get("rules"), where="defaults.rules")
    default_constraints = _id_list(defaults.get("constraints"), where="defaults.constraints")

    raw_profiles = data.get("profiles", {})
    if not isinstance(raw_profiles, dict):
        raise ConfigError("profiles must be a table of named profiles")

    profiles: dict[str, StepConfig] = {}
    for name, raw in raw_profiles.items():
        name = str(name).strip()
        if not name:
            continue
        raw = _coerce_dict(raw)

        rules = _id_list(raw.get("rules"), where=f"profiles.{name}.rules")
        constraints = _id_list(raw.get("constraints"), where=f"profiles.{name}.constraints")

        profiles[name] = StepConfig(
            rule_ids=rules if rules is not None else default_rules,
            constraint_ids=constraints if constraints is not None else default_constraints,
        )

    return StepProfiles(profiles=profiles, source=path)
