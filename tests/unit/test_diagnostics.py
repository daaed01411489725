"""Tests for event bus and diagnostics envelope/sink."""

from __future__ import annotations

import json
from pathlib import Path

from depstore.core.config import ConfigResolver
from depstore.core.diagnostics import (
    build_envelope,
    is_diagnostics_enabled,
    is_envelope,
    make_jsonl_sink,
)
from depstore.core.events import EventBus


def _resolver(tmp_path: Path, cli_args: dict | None = None) -> ConfigResolver:
    return ConfigResolver(
        cli_args=cli_args or {},
        user_config_path=tmp_path / "none.yaml",
        system_config_path=tmp_path / "none.yaml",
    )


def test_build_envelope_shape() -> None:
    env = build_envelope(event="e", component="pipeline", operation="import.extract", data={"a": 1})

    assert set(env) == {"event", "component", "operation", "timestamp", "data"}
    assert env["timestamp"].endswith("Z")
    assert is_envelope(env)
    assert not is_envelope({"data": {}})


def test_diagnostics_disabled_by_default(tmp_path) -> None:
    assert is_diagnostics_enabled(_resolver(tmp_path)) is False


def test_diagnostics_enabled_from_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("DEPSTORE_DIAGNOSTICS_ENABLED", "yes")
    assert is_diagnostics_enabled(_resolver(tmp_path)) is True


def test_invalid_enabled_value_treated_as_disabled(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("DEPSTORE_DIAGNOSTICS_ENABLED", "sometimes")
    assert is_diagnostics_enabled(_resolver(tmp_path)) is False


def test_jsonl_sink_writes_envelopes_when_enabled(tmp_path) -> None:
    out = tmp_path / "diag" / "d.jsonl"
    resolver = _resolver(tmp_path, {"diagnostics": {"enabled": True, "path": str(out)}})
    bus = EventBus()
    bus.subscribe_all(make_jsonl_sink(resolver))

    env = build_envelope(event="import.stage.end", component="pipeline", operation="x", data={})
    bus.publish("import.stage.end", env)
    bus.publish("raw", {"k": "v"})

    lines = [json.loads(line) for line in out.read_text().splitlines()]
    assert lines[0] == env
    assert lines[1]["component"] == "unknown"
    assert lines[1]["data"] == {"k": "v"}


def test_jsonl_sink_no_io_when_disabled(tmp_path) -> None:
    out = tmp_path / "d.jsonl"
    resolver = _resolver(tmp_path, {"diagnostics": {"path": str(out)}})
    bus = EventBus()
    bus.subscribe_all(make_jsonl_sink(resolver))

    bus.publish("raw", {"k": "v"})

    assert not out.exists()


def test_event_bus_failing_handler_does_not_block_others() -> None:
    bus = EventBus()
    seen: list[dict] = []

    def _boom(data: dict) -> None:
        raise RuntimeError("handler failure")

    bus.subscribe("evt", _boom)
    bus.subscribe("evt", seen.append)

    bus.publish("evt", {"n": 1})

    assert seen == [{"n": 1}]


def test_configure_wires_logging_and_diagnostics(tmp_path, monkeypatch, make_tgz, package_files):
    import depstore.core.diagnostics as diagnostics
    from depstore import configure, import_from_file
    from depstore.core.logging import VerbosityLevel, get_verbosity, set_colors

    monkeypatch.setattr(diagnostics, "_SINK_INSTALLED", False)
    out = tmp_path / "d.jsonl"
    resolver = _resolver(
        tmp_path,
        {
            "store": {"dir": str(tmp_path / "store")},
            "logging": {"level": "verbose", "color": False},
            "diagnostics": {"enabled": True, "path": str(out)},
        },
    )

    try:
        ctx = configure(resolver)
        import_from_file(ctx, make_tgz("foo-1.0.0.tgz", package_files()))
    finally:
        set_colors(True)

    assert get_verbosity() == VerbosityLevel.VERBOSE
    assert ctx.get_store_dir() == tmp_path / "store"
    ends = [
        json.loads(line)["data"]
        for line in out.read_text().splitlines()
        if json.loads(line)["event"] == "import.stage.end"
    ]
    assert [(d["stage"], d["status"]) for d in ends] == [
        ("select_extractor", "succeeded"),
        ("extract", "succeeded"),
        ("install", "succeeded"),
    ]
    assert ends[-1]["name"] == "foo"


def test_event_bus_failing_all_handler_is_isolated() -> None:
    bus = EventBus()
    named: list[dict] = []
    seen_all: list[tuple[str, dict]] = []

    def _boom(event: str, data: dict) -> None:
        raise RuntimeError("all-handler failure")

    bus.subscribe("evt", named.append)
    bus.subscribe_all(_boom)
    bus.subscribe_all(lambda event, data: seen_all.append((event, data)))

    bus.publish("evt")

    assert named == [{}]
    assert seen_all == [("evt", {})]
