"""connlog configuration, env-var driven.

All settings have safe defaults. With no CONNLOG_PATH the connection log
is disabled and every handle built from the config is a no-op.

    CONNLOG_PATH           file the connection log appends to (unset: disabled)
    CONNLOG_LOG_FORMATTER  structlog (default) | stdlib
    CONNLOG_LOG_LEVEL      INFO (default)
    CONNLOG_LOG_FORMAT     json (default) | console
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class ConnLogConfig:
    """connlog configuration, env-var driven."""

    # --- Connection log ---
    path: str | None = field(
        default_factory=lambda: os.environ.get("CONNLOG_PATH") or None
    )

    # --- Diagnostic logging ---
    log_formatter: str = field(
        default_factory=lambda: os.environ.get("CONNLOG_LOG_FORMATTER", "structlog")
    )  # "structlog" | "stdlib"

    log_level: str = field(
        default_factory=lambda: os.environ.get("CONNLOG_LOG_LEVEL", "INFO")
    )

    log_format: str = field(
        default_factory=lambda: os.environ.get("CONNLOG_LOG_FORMAT", "json")
    )  # "json" | "console"

    @property
    def enabled(self) -> bool:
        return bool(self.path)
