"""Tests for centralized logging system."""

from __future__ import annotations

from depstore.core.config import ConfigResolver
from depstore.core.logging import (
    LogRecord,
    VerbosityLevel,
    apply_logging_policy,
    get_log_bus,
    get_logger,
    get_verbosity,
    set_colors,
    set_log_sink,
    set_verbosity,
)


class TestVerbosityLevel:
    """Test VerbosityLevel enum."""

    def test_verbosity_values(self):
        assert VerbosityLevel.QUIET == 0
        assert VerbosityLevel.NORMAL == 1
        assert VerbosityLevel.VERBOSE == 2
        assert VerbosityLevel.DEBUG == 3

    def test_set_get_verbosity(self):
        set_verbosity(2)
        assert get_verbosity() == VerbosityLevel.VERBOSE

        set_verbosity(VerbosityLevel.DEBUG)
        assert get_verbosity() == VerbosityLevel.DEBUG


def _collect() -> list[LogRecord]:
    collected: list[LogRecord] = []
    get_log_bus().subscribe_all(collected.append)
    return collected


def test_log_bus_receives_plain_record() -> None:
    collected = _collect()

    get_logger("logbus_test").info("hello")

    assert len(collected) == 1
    assert collected[0].plain == "[info] hello"
    assert collected[0].level_name == "INFO"
    assert collected[0].logger_name == "logbus_test"


def test_verbose_hidden_at_normal_and_shown_at_verbose() -> None:
    collected = _collect()
    logger = get_logger("verbosity_test")

    logger.verbose("hidden")
    set_verbosity(VerbosityLevel.VERBOSE)
    logger.verbose("shown")

    assert [r.plain for r in collected] == ["[verbose] shown"]


def test_quiet_keeps_warnings_and_errors(capsys) -> None:
    collected = _collect()
    set_verbosity(VerbosityLevel.QUIET)
    logger = get_logger("quiet_test")

    logger.info("dropped")
    logger.warning("kept")
    logger.error("also kept")

    assert [r.level_name for r in collected] == ["WARNING", "ERROR"]
    assert "[error] also kept" in capsys.readouterr().err


def test_log_sink_receives_lines_until_disabled() -> None:
    lines: list[str] = []
    set_log_sink(lines.append)
    logger = get_logger("sink_test")

    logger.info("one")
    set_log_sink(None)
    logger.info("two")

    assert lines == ["[info] one"]


def test_log_sink_replacement_delivers_once() -> None:
    first: list[str] = []
    second: list[str] = []
    set_log_sink(first.append)
    set_log_sink(second.append)

    get_logger("sink_test").info("only second")

    assert first == []
    assert second == ["[info] only second"]


def test_failing_subscriber_does_not_crash(capsys) -> None:
    def _boom(rec: LogRecord) -> None:
        raise RuntimeError("subscriber failure")

    get_log_bus().subscribe_all(_boom)
    collected = _collect()

    get_logger("boom_test").info("still delivered")

    assert [r.plain for r in collected] == ["[info] still delivered"]
    assert "LogBus subscriber raised" in capsys.readouterr().err


def test_apply_logging_policy(tmp_path) -> None:
    for level, expected in (
        ("quiet", VerbosityLevel.QUIET),
        ("normal", VerbosityLevel.NORMAL),
        ("verbose", VerbosityLevel.VERBOSE),
        ("debug", VerbosityLevel.DEBUG),
    ):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": level}},
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none.yaml",
        )
        apply_logging_policy(resolver.resolve_logging_policy())
        assert get_verbosity() == expected


def test_set_colors_plain_output(capsys) -> None:
    set_colors(False)
    get_logger("color_test").info("plain")
    set_colors(True)

    assert "[info] plain" in capsys.readouterr().out
