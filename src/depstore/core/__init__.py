"""depstore core: errors, configuration, logging and diagnostics."""

from depstore.core.config import ConfigResolver, LoggingPolicy
from depstore.core.errors import (
    ConfigError,
    DepStoreError,
    ExtractionError,
    HashError,
    ImportStageError,
    MetadataMissingError,
    StoreFilesystemError,
    UnsupportedFormatError,
)
from depstore.core.events import EventBus, get_event_bus
from depstore.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    set_colors,
    set_log_sink,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "LoggingPolicy",
    # Errors
    "DepStoreError",
    "ConfigError",
    "ImportStageError",
    "UnsupportedFormatError",
    "ExtractionError",
    "MetadataMissingError",
    "HashError",
    "StoreFilesystemError",
    # Events
    "EventBus",
    "get_event_bus",
    # Logging
    "VerbosityLevel",
    "apply_logging_policy",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_log_sink",
    "set_verbosity",
]
