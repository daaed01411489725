"""Diagnostics envelope + JSONL sink.

Pipeline stages publish envelopes on the event bus. When
``diagnostics.enabled`` is true, the sink appends every envelope as one JSON
line to ``diagnostics.path``.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from depstore.core.config import ConfigResolver
from depstore.core.errors import ConfigError
from depstore.core.events import get_event_bus
from depstore.core.logging import get_logger

_logger = get_logger(__name__)

_ENVELOPE_KEYS = frozenset({"event", "component", "operation", "timestamp", "data"})


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }

    Timestamp is emitted in UTC with a trailing 'Z'.
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def is_envelope(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and set(obj.keys()) == _ENVELOPE_KEYS
        and isinstance(obj.get("data"), dict)
    )


def is_diagnostics_enabled(resolver: ConfigResolver) -> bool:
    """Return whether diagnostics are enabled (``diagnostics.enabled``).

    Invalid values are treated as disabled.
    """
    try:
        return resolver.resolve_bool("diagnostics.enabled", False)
    except ConfigError as e:
        _logger.warning(f"Invalid diagnostics.enabled value; treating as disabled. error={e}")
        return False


def make_jsonl_sink(resolver: ConfigResolver) -> Callable[[str, dict[str, Any]], None]:
    """Return an all-event subscriber writing envelopes to ``diagnostics.path``.

    The subscriber self-filters when diagnostics are disabled and performs no IO.
    """

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        if not is_diagnostics_enabled(resolver):
            return

        path_value = resolver.resolve_optional("diagnostics.path")
        if path_value is None:
            _logger.warning("Missing diagnostics.path; cannot write diagnostics JSONL.")
            return
        out_path = Path(str(path_value))

        if is_envelope(data):
            payload = data
        else:
            payload = build_envelope(
                event=event, component="unknown", operation="unknown", data=data
            )

        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"), sort_keys=True)
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.write("\n")
        except OSError as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    return _on_any_event


_SINK_INSTALLED = False


def install_jsonl_sink(*, resolver: ConfigResolver) -> None:
    """Install the JSONL diagnostics sink on the global event bus.

    Idempotent: registers exactly once per process.
    """
    global _SINK_INSTALLED
    if _SINK_INSTALLED:
        return

    get_event_bus().subscribe_all(make_jsonl_sink(resolver))
    _SINK_INSTALLED = True
