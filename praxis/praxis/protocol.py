"""
Language-neutral protocol types.

Everything here is plain data that round-trips through JSON. The wire shapes
(camelCase keys, optional ``meta``/``data``) are shared with the other engine
ports, so ``to_dict``/``from_dict`` must stay byte-compatible with them.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Literal, Mapping

PROTOCOL_VERSION = "1.0.0"

RULE_ERROR = "rule-error"
CONSTRAINT_VIOLATION = "constraint-violation"

DiagnosticKind = Literal["rule-error", "constraint-violation"]

DIAGNOSTIC_KINDS = frozenset({RULE_ERROR, CONSTRAINT_VIOLATION})


def to_json_value(value: Any) -> Any:
    """
    Convert an in-memory value into plain JSON data.

    Handles primitives, mappings with string keys, lists/tuples, enums,
    dataclasses, pydantic-style models (``model_dump``) and objects exposing
    ``to_dict()``. Anything else raises TypeError.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return to_json_value(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json_value(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"JSON object keys must be strings, got {type(k).__name__}")
            out[k] = to_json_value(v)
        return out
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return to_json_value(model_dump(mode="json"))
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_json_value(to_dict())
    raise TypeError(f"Value of type {type(value).__name__} is not JSON-serializable")


def _tagged_fields(data: Any, kind: str) -> tuple[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{kind} must be an object, got {type(data).__name__}")
    tag = data.get("tag")
    if not isinstance(tag, str):
        raise ValueError(f"{kind} tag must be a string")
    return tag, data.get("payload")


@dataclass(frozen=True)
class Fact:
    """A tagged proposition about the domain. Facts are only ever appended."""

    tag: str
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "payload": to_json_value(self.payload)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Fact":
        tag, payload = _tagged_fields(data, "Fact")
        return cls(tag=tag, payload=payload)


@dataclass(frozen=True)
class Event:
    """A tagged occurrence. Events live for one step and are never stored."""

    tag: str
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "payload": to_json_value(self.payload)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        tag, payload = _tagged_fields(data, "Event")
        return cls(tag=tag, payload=payload)


@dataclass(frozen=True)
class State:
    """
    Engine state at a point in time.

    ``context`` holds the JSON form of the application context; the engine
    keeps the typed object separately.
    """

    context: Any
    facts: tuple[Fact, ...] = ()
    meta: dict[str, Any] | None = None
    protocol_version: str = PROTOCOL_VERSION

    @classmethod
    def create(
        cls,
        context: Any,
        facts: Iterable[Fact] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> "State":
        """Build a state stamped with this build's protocol version."""
        return cls(
            context=to_json_value(context),
            facts=tuple(facts or ()),
            meta=dict(meta) if meta is not None else None,
            protocol_version=PROTOCOL_VERSION,
        )

    def with_facts(self, new_facts: Iterable[Fact]) -> "State":
        return replace(self, facts=self.facts + tuple(new_facts))

    def with_context(self, context: Any) -> "State":
        return replace(self, context=to_json_value(context))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shared wire shape."""
        result: dict[str, Any] = {
            "context": to_json_value(self.context),
            "facts": [f.to_dict() for f in self.facts],
        }
        if self.meta is not None:
            result["meta"] = to_json_value(self.meta)
        result["protocolVersion"] = self.protocol_version
        return result

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "State":
        """Deserialize from the wire shape. ``$version`` is accepted and ignored."""
        if not isinstance(data, Mapping):
            raise ValueError(f"State must be an object, got {type(data).__name__}")
        if "context" not in data:
            raise ValueError("State is missing 'context'")

        raw_facts = data.get("facts", [])
        if not isinstance(raw_facts, list):
            raise ValueError("State 'facts' must be a list")

        meta = data.get("meta")
        if meta is not None and not isinstance(meta, Mapping):
            raise ValueError("State 'meta' must be an object")

        version = data.get("protocolVersion")
        if not isinstance(version, str) or not version.strip():
            raise ValueError("State is missing 'protocolVersion'")

        return cls(
            context=data["context"],
            facts=tuple(Fact.from_dict(f) for f in raw_facts),
            meta=dict(meta) if meta is not None else None,
            protocol_version=version,
        )

    @classmethod
    def from_json(cls, text: str) -> "State":
        return cls.from_dict(json.loads(text))


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while running a step."""

    kind: DiagnosticKind
    message: str
    data: Any = None

    def __post_init__(self) -> None:
        if self.kind not in DIAGNOSTIC_KINDS:
            raise ValueError(f"Invalid diagnostic kind: {self.kind}")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.data is not None:
            result["data"] = to_json_value(self.data)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Diagnostic":
        return cls(
            kind=data.get("kind", ""),  # type: ignore[arg-type]
            message=str(data.get("message", "")),
            data=data.get("data"),
        )


@dataclass(frozen=True)
class StepConfig:
    """
    Which rules and constraints a step evaluates, in order.

    ``None`` means every id currently in the registry.
    """

    rule_ids: tuple[str, ...] | None = None
    constraint_ids: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        # Accept any iterable of ids but store tuples. A bare string would
        # otherwise be split into one id per character.
        for name in ("rule_ids", "constraint_ids"):
            ids = getattr(self, name)
            if ids is None:
                continue
            if isinstance(ids, (str, bytes)):
                raise TypeError(f"{name} must be a sequence of ids, not {type(ids).__name__}")
            object.__setattr__(self, name, tuple(ids))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.rule_ids is not None:
            result["ruleIds"] = list(self.rule_ids)
        if self.constraint_ids is not None:
            result["constraintIds"] = list(self.constraint_ids)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StepConfig":
        rule_ids = data.get("ruleIds")
        constraint_ids = data.get("constraintIds")
        if isinstance(rule_ids, str) or isinstance(constraint_ids, str):
            raise ValueError("ruleIds and constraintIds must be lists of ids")
        return cls(
            rule_ids=tuple(str(r) for r in rule_ids) if rule_ids is not None else None,
            constraint_ids=tuple(str(c) for c in constraint_ids) if constraint_ids is not None else None,
        )


@dataclass(frozen=True)
class StepResult:
    """New state plus the diagnostics collected while producing it."""

    state: State
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def rule_errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == RULE_ERROR]

    @property
    def violations(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == CONSTRAINT_VIOLATION]

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
