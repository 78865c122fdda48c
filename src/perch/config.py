"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``AppConfig.from_env()`` builds one from the
process environment layered over an optional ``.env`` file.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

_ENVIRONMENTS = frozenset({"dev", "prod", "test"})
_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(env="dev", app_url="https://app.example.com")
    """

    # "dev" exposes exception detail and pretty-prints JSON
    env: str = "prod"

    # Origin allowed by the CORS headers on every JSON response
    app_url: str | None = None

    # Logging
    log_level: str = "info"
    log_file: str | Path | None = None

    # JSON output
    pretty_json: bool | None = None  # None = follow env

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    def __post_init__(self) -> None:
        if self.env not in _ENVIRONMENTS:
            allowed = ", ".join(sorted(_ENVIRONMENTS))
            msg = f"Unknown environment {self.env!r}; expected one of: {allowed}"
            raise ValueError(msg)
        if self.log_level.lower() not in _LOG_LEVELS:
            allowed = ", ".join(sorted(_LOG_LEVELS))
            msg = f"Unknown log level {self.log_level!r}; expected one of: {allowed}"
            raise ValueError(msg)

    @property
    def debug(self) -> bool:
        """True in the development environment."""
        return self.env == "dev"

    @property
    def indent_json(self) -> bool:
        if self.pretty_json is None:
            return self.debug
        return self.pretty_json

    @classmethod
    def from_env(
        cls,
        env_file: str | Path | None = ".env",
        environ: Mapping[str, str] | None = None,
    ) -> "AppConfig":
        """Build a config from ``APP_ENV``, ``APP_URL``, ``LOG_LEVEL``, ``LOG_FILE``.

        Values from *env_file* (if it exists) are loaded first; the real
        process environment wins over the file. A missing file is not an
        error.

        Only ``APP_ENV=dev`` enables development mode; ``test`` is kept and
        any other value (``production``, ``staging``, ...) runs as ``prod``.
        An unknown ``LOG_LEVEL`` falls back to ``info``.
        """
        values: dict[str, str | None] = {}
        if env_file is not None and Path(env_file).is_file():
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        env = (values.get("APP_ENV") or "prod").strip().lower()
        if env not in _ENVIRONMENTS:
            env = "prod"
        log_level = (values.get("LOG_LEVEL") or "info").strip().lower()
        if log_level not in _LOG_LEVELS:
            log_level = "info"

        log_file = values.get("LOG_FILE") or None
        return cls(
            env=env,
            app_url=values.get("APP_URL") or None,
            log_level=log_level,
            log_file=log_file,
        )
