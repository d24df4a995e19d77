"""
Ledger Configuration Schema.

Defines the structure and defaults for ledger and migration settings.
Values can come from code, a YAML file, or ``INVENTORY_LEDGER_*``
environment variables:

    config = LedgerConfig.from_yaml("ledger.yaml").with_env_overrides()

Failure modes:
    - Invalid values raise ``ValueError`` from ``__post_init__``.
    - Unknown keys in a dict/YAML source raise ``ValueError``.
    - Missing YAML file -> ``FileNotFoundError`` propagates.
    - Malformed YAML -> ``yaml.YAMLError`` propagates.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Self

import yaml

from inventory_kernel.domain.retry import RetryPolicy, exponential_backoff
from inventory_kernel.logging_config import get_logger

logger = get_logger("config")

ENV_PREFIX = "INVENTORY_LEDGER_"
YAML_SECTION = "inventory_ledger"


@dataclass(frozen=True)
class LedgerConfig:
    """
    Configuration for the category ledger and the migration engine.

    Field defaults match the dashboard's historical behaviour:
    threshold 5, critical at half the threshold, 50 history rows,
    migration batches of 10 categories.
    """

    # Ledger
    default_low_stock_threshold: int = 5
    critical_ratio: float = 0.5
    history_default_limit: int = 50

    # Migration
    migration_batch_size: int = 10
    migration_lease_seconds: int = 900
    uncategorized_category_id: str = "uncategorized"
    uncategorized_category_name: str = "Uncategorized"

    # Store retry
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.05
    retry_max_delay_seconds: float = 1.0

    database_url: str | None = None

    def __post_init__(self):
        if self.default_low_stock_threshold < 1:
            raise ValueError("default_low_stock_threshold must be at least 1")
        if not 0 < self.critical_ratio < 1:
            raise ValueError(
                f"critical_ratio must be between 0 and 1 exclusive, "
                f"got {self.critical_ratio}"
            )
        if self.history_default_limit < 1:
            raise ValueError("history_default_limit must be positive")
        if self.migration_batch_size < 1:
            raise ValueError("migration_batch_size must be positive")
        if self.migration_lease_seconds < 1:
            raise ValueError("migration_lease_seconds must be positive")
        if not self.uncategorized_category_id:
            raise ValueError("uncategorized_category_id cannot be empty")
        if self.retry_max_attempts < 1:
            raise ValueError("retry_max_attempts must be at least 1")
        if self.retry_base_delay_seconds < 0:
            raise ValueError("retry_base_delay_seconds cannot be negative")
        if self.retry_max_delay_seconds < self.retry_base_delay_seconds:
            raise ValueError(
                "retry_max_delay_seconds cannot be less than retry_base_delay_seconds"
            )

        logger.info(
            "ledger_config_initialized",
            extra={
                "default_low_stock_threshold": self.default_low_stock_threshold,
                "critical_ratio": self.critical_ratio,
                "migration_batch_size": self.migration_batch_size,
                "migration_lease_seconds": self.migration_lease_seconds,
                "retry_max_attempts": self.retry_max_attempts,
            },
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            backoff=exponential_backoff(
                self.retry_base_delay_seconds, self.retry_max_delay_seconds,
            ),
        )

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("ledger_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create config from a mapping (e.g. a parsed YAML section)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown ledger config keys: {unknown}")
        logger.info(
            "ledger_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """
        Load config from a YAML file.

        The settings may sit at the top level or under an
        ``inventory_ledger:`` section.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Ledger config in {path} must be a mapping")
        if YAML_SECTION in data:
            data = data[YAML_SECTION] or {}
        return cls.from_dict(data)

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> Self:
        """Return a copy with ``INVENTORY_LEDGER_<FIELD>`` variables applied."""
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(self):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            current = getattr(self, f.name)
            if isinstance(current, int):
                overrides[f.name] = int(raw)
            elif isinstance(current, float):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        if not overrides:
            return self
        logger.info(
            "ledger_config_env_overrides",
            extra={"keys": sorted(overrides)},
        )
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        return cls().with_env_overrides(environ)
