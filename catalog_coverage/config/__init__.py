"""Configuration module for catalog-coverage."""

from catalog_coverage.config.settings import CoverageConfig, load_config

__all__ = ["CoverageConfig", "load_config"]
