"""Runtime settings — env-driven via pydantic-settings.

Reads from a .env file and MULTISTORE_* environment variables, and builds
the frozen ``DispatchConfig`` / ``RetryPolicy`` objects that are injected
into catalogs, registries and dispatchers.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from multistore.models.config import DispatchConfig, ErrorHandler, RetryPolicy


class MultistoreSettings(BaseSettings):
    """Process settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export MULTISTORE_ASYNC_ENABLED=false
        export MULTISTORE_QUEUE_NAME=search
        export MULTISTORE_MAX_ATTEMPTS=3

    Or via .env file::

        MULTISTORE_LOG_LEVEL=DEBUG
        MULTISTORE_DECLARATIONS_PATH=config/multistore.json
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MULTISTORE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Dispatch
    async_enabled: bool = True
    queue_name: str = "default"
    queue_workers: int = 2
    queue_capacity: int = 1024

    # Dispatch job retry
    max_attempts: int = 5
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 30.0
    backoff_jitter: bool = True

    # Declarations file used by the CLI when no path is given
    declarations_path: Path = Path("multistore.json")

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    def dispatch_config(self, error_handler: ErrorHandler | None = None) -> DispatchConfig:
        return DispatchConfig(
            async_enabled=self.async_enabled,
            queue_name=self.queue_name,
            error_handler=error_handler,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay_seconds=self.backoff_base_seconds,
            max_delay_seconds=self.backoff_max_seconds,
            jitter=self.backoff_jitter,
        )


# Module-level singleton; import as `from multistore.config import settings`
settings = MultistoreSettings()
