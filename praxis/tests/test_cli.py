"""Tests for the CLI commands."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from praxis.cli import cli
from praxis.commands.inspect_cmd import run_inspect
from praxis.commands.run_cmd import load_event_batches, run_events
from praxis.commands.snapshot_cmd import run_snapshot_check
from praxis.commands.targets import load_registry
from praxis.errors import ConfigError
from praxis.protocol import PROTOCOL_VERSION
from praxis.snapshot import load_snapshot

TARGET = "praxis.samples:counter_registry"


def _write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def events_file(tmp_path: Path) -> Path:
    return _write_json(
        tmp_path / "events.json",
        [
            [{"tag": "INCREMENT", "payload": {"amount": 4}}],
            [{"tag": "INCREMENT", "payload": {"amount": 20}}],
        ],
    )


@pytest.fixture
def context_file(tmp_path: Path) -> Path:
    return _write_json(tmp_path / "context.json", {"count": 0, "max": 10})


class TestTargets:
    def test_factory_and_module_targets(self):
        assert load_registry(TARGET).get_rule_ids() == ["counter.increment", "counter.reset"]
        assert load_registry("praxis.samples:counter_module").module_count == 1

    @pytest.mark.parametrize(
        "target",
        ["praxis.samples", "no_such_module_xyz:thing", "praxis.samples:missing", "praxis.samples:Increment"],
    )
    def test_bad_targets(self, target):
        with pytest.raises(ConfigError):
            load_registry(target)


class TestEventBatches:
    def test_flat_list_is_one_batch(self, tmp_path):
        path = _write_json(tmp_path / "e.json", [{"tag": "A"}, {"tag": "B", "payload": 1}])
        batches = load_event_batches(path)
        assert [[e.tag for e in b] for b in batches] == [["A", "B"]]

    def test_nested_lists_are_steps(self, events_file):
        assert len(load_event_batches(events_file)) == 2

    def test_invalid_events(self, tmp_path):
        with pytest.raises(ConfigError):
            load_event_batches(_write_json(tmp_path / "e.json", {"tag": "A"}))
        with pytest.raises(ConfigError):
            load_event_batches(_write_json(tmp_path / "f.json", [{"payload": 1}]))


class TestInspect:
    def test_json_stats(self, capsys):
        assert run_inspect(TARGET, fmt="json") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["ruleCount"] == 2
        assert data["constraintsById"] == ["counter.nonNegative", "counter.max"]

    def test_dot_to_file(self, tmp_path):
        out = tmp_path / "registry.dot"
        assert run_inspect(TARGET, fmt="dot", out=out) == 0
        assert out.read_text(encoding="utf-8").startswith("digraph PraxisRegistry {")

    def test_search(self, capsys):
        assert run_inspect(TARGET, query="max") == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"query": "max", "rules": [], "constraints": ["counter.max"]}

    def test_bad_target(self):
        assert run_inspect("praxis.samples:missing") == 1


class TestRun:
    def test_json_report(self, events_file, context_file, capsys):
        code = run_events(TARGET, events_file, context_path=context_file, output_json=True)
        assert code == 0

        data = json.loads(capsys.readouterr().out)
        assert data["state"]["context"]["count"] == 24
        assert data["state"]["protocolVersion"] == PROTOCOL_VERSION
        assert data["steps"][0]["diagnostics"] == []
        assert data["steps"][1]["diagnostics"] == [
            {
                "kind": "constraint-violation",
                "message": "Count exceeds the configured maximum",
                "data": {"constraintId": "counter.max", "description": "Count stays within context max"},
            }
        ]

    def test_fail_on_diagnostics(self, events_file, context_file):
        code = run_events(TARGET, events_file, context_path=context_file, fail_on_diagnostics=True)
        assert code == 1

    def test_profile_limits_constraints(self, tmp_path, events_file, context_file, capsys):
        config = tmp_path / "praxis.toml"
        config.write_text('[profiles.lenient]\nconstraints = ["counter.nonNegative"]\n', encoding="utf-8")

        code = run_events(
            TARGET,
            events_file,
            context_path=context_file,
            config_path=config,
            profile="lenient",
            output_json=True,
            fail_on_diagnostics=True,
        )
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert all(step["diagnostics"] == [] for step in data["steps"])

    def test_snapshot_out_and_resume(self, tmp_path, events_file, context_file, capsys):
        out = tmp_path / "state.json"
        assert run_events(TARGET, events_file, context_path=context_file, out=out) == 0
        assert load_snapshot(out).context["count"] == 24
        capsys.readouterr()

        more = _write_json(tmp_path / "more.json", [{"tag": "RESET"}])
        assert run_events(TARGET, more, state_path=out, output_json=True) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["state"]["context"]["count"] == 0
        assert [f["tag"] for f in data["state"]["facts"]] == ["Incremented", "Incremented", "WasReset"]

    def test_unknown_profile_fails(self, tmp_path, events_file):
        config = tmp_path / "praxis.toml"
        config.write_text("[profiles.a]\n", encoding="utf-8")
        assert run_events(TARGET, events_file, config_path=config, profile="b") == 1


class TestSnapshotCheck:
    def test_ok(self, tmp_path, capsys):
        path = _write_json(
            tmp_path / "s.json",
            {"$version": "1.0.0", "context": {}, "facts": [{"tag": "A"}], "protocolVersion": PROTOCOL_VERSION},
        )
        assert run_snapshot_check(path, output_json=True) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["ok"] is True
        assert data["findings"] == [{"level": "info", "message": "1 facts"}]

    def test_incompatible_major(self, tmp_path, capsys):
        path = _write_json(tmp_path / "s.json", {"context": {}, "facts": [], "protocolVersion": "2.0.0"})
        assert run_snapshot_check(path, output_json=True) == 1
        assert json.loads(capsys.readouterr().out)["ok"] is False

    def test_unreadable(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("nope", encoding="utf-8")
        assert run_snapshot_check(path) == 1


class TestClickWiring:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "praxis" in result.output

    def test_run_command(self, events_file, context_file):
        result = CliRunner().invoke(cli, ["run", TARGET, str(events_file), "--context", str(context_file)])
        assert result.exit_code == 0
        assert "Ran 2 steps" in result.output

    def test_profile_without_config(self, events_file):
        result = CliRunner().invoke(cli, ["run", TARGET, str(events_file), "--profile", "x"])
        assert result.exit_code == 2

    def test_inspect_mermaid(self):
        result = CliRunner().invoke(cli, ["inspect", "praxis.samples:counter_module", "--format", "mermaid"])
        assert result.exit_code == 0
        assert result.output.startswith("graph TB")
