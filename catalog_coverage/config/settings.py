"""Centralized configuration for coverage collection.

Configuration can be loaded from a YAML file and validated at startup.
Every value has a documented default, so a missing file is not an error.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from catalog_coverage.registry.filters import DEFAULT_FILTERS
from catalog_coverage.utils.result import ConfigError, Err, Ok, Result

# Environment variable overriding the exchange directory
EXCHANGE_DIR_ENV = "CATALOG_COVERAGE_DIR"

# Default configuration file name, looked up in the working directory
DEFAULT_CONFIG_FILE = "coverage.yaml"


@dataclass
class ExchangeConfig:
    """Where and under which names workers exchange partial results."""

    directory: Optional[Path] = None
    filter_prefix: str = "coverage-filter"
    result_prefix: str = "coverage-result"


@dataclass
class ModulesConfig:
    """Locations of modules and the site manifest."""

    modulepath: list[str] = field(default_factory=list)
    manifest: Optional[str] = None


@dataclass
class ParallelConfig:
    """How a parallel test run is detected."""

    # Set (even to "") in every worker; "" or "1" marks the first worker
    env_var: str = "TEST_ENV_NUMBER"


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "warning"
    format: str = "json"


@dataclass
class CoverageConfig:
    """
    Complete coverage configuration.

    ``desired_coverage`` is kept as given; an out-of-range or non-numeric
    value is reported by the threshold check instead of being rejected here.
    """

    default_filters: list[str] = field(default_factory=lambda: list(DEFAULT_FILTERS))
    desired_coverage: Any = None

    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    modules: ModulesConfig = field(default_factory=ModulesConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> Result["CoverageConfig", ConfigError]:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Result with loaded config or error
        """
        path = Path(path)

        if not path.exists():
            return Err(ConfigError(
                field="path",
                message=f"Configuration file not found: {path}",
            ))

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            return Err(ConfigError(
                field="yaml",
                message=f"Failed to parse YAML: {e}",
            ))
        except OSError as e:
            return Err(ConfigError(
                field="file",
                message=f"Failed to read config file: {e}",
            ))

        if not isinstance(data, dict):
            return Err(ConfigError(
                field="yaml",
                message="Top level of the configuration must be a mapping",
            ))

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result["CoverageConfig", ConfigError]:
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Result with loaded config or error
        """
        try:
            exchange_data = data.get("exchange") or {}
            directory = exchange_data.get("directory")
            exchange = ExchangeConfig(
                directory=Path(directory) if directory else None,
                filter_prefix=exchange_data.get("filter_prefix", "coverage-filter"),
                result_prefix=exchange_data.get("result_prefix", "coverage-result"),
            )

            modules_data = data.get("modules") or {}
            modules = ModulesConfig(
                modulepath=[str(p) for p in modules_data.get("modulepath", [])],
                manifest=modules_data.get("manifest"),
            )

            parallel_data = data.get("parallel") or {}
            parallel = ParallelConfig(
                env_var=parallel_data.get("env_var", "TEST_ENV_NUMBER"),
            )

            logging_data = data.get("logging") or {}
            logging_config = LoggingConfig(
                level=logging_data.get("level", "warning"),
                format=logging_data.get("format", "json"),
            )

            config = cls(
                default_filters=list(data.get("default_filters", DEFAULT_FILTERS)),
                desired_coverage=data.get("desired_coverage"),
                exchange=exchange,
                modules=modules,
                parallel=parallel,
                logging=logging_config,
            )

            return Ok(config)

        except (AttributeError, TypeError, ValueError) as e:
            return Err(ConfigError(
                field="unknown",
                message=f"Failed to parse configuration: {e}",
            ))

    def validate(self) -> Result[None, ConfigError]:
        """
        Validate configuration values.

        Returns:
            Result indicating success or validation error
        """
        for pattern in self.default_filters:
            if not isinstance(pattern, str) or not pattern.endswith("]") or "[" not in pattern:
                return Err(ConfigError(
                    field="default_filters",
                    message=f"Expected Type[Title] patterns, got {pattern!r}",
                ))

        for name, value in [
            ("exchange.filter_prefix", self.exchange.filter_prefix),
            ("exchange.result_prefix", self.exchange.result_prefix),
        ]:
            if not value or os.sep in value:
                return Err(ConfigError(
                    field=name,
                    message=f"Must be a non-empty file name prefix, got {value!r}",
                ))

        if self.exchange.filter_prefix == self.exchange.result_prefix:
            return Err(ConfigError(
                field="exchange",
                message="Filter and result prefixes must differ",
            ))

        if not self.parallel.env_var:
            return Err(ConfigError(
                field="parallel.env_var",
                message="Must name an environment variable",
            ))

        if self.logging.format not in ("json", "text"):
            return Err(ConfigError(
                field="logging.format",
                message=f"Must be 'json' or 'text', got {self.logging.format!r}",
            ))

        return Ok(None)

    def exchange_directory(self) -> Optional[Path]:
        """Exchange directory, honouring the environment override."""
        override = os.environ.get(EXCHANGE_DIR_ENV)
        if override:
            return Path(override)
        return self.exchange.directory


def load_config(path: Optional[Path] = None) -> Result[CoverageConfig, ConfigError]:
    """
    Load configuration from the standard location.

    Falls back to defaults when the file does not exist.

    Args:
        path: Configuration file (defaults to ./coverage.yaml)

    Returns:
        Result with loaded config or error
    """
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)

    path = Path(path)

    if path.exists():
        result = CoverageConfig.from_yaml(path)
        if result.is_err():
            return result
        config = result.unwrap()
    else:
        config = CoverageConfig()

    validation_result = config.validate()
    if validation_result.is_err():
        return Err(validation_result.unwrap_err())

    return Ok(config)
