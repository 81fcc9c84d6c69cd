"""Configuration loading utilities for sonarping."""

from .schema import (
    ScenarioConfig,
    load_config,
)

__all__ = ["ScenarioConfig", "load_config"]
