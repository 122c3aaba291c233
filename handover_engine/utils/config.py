"""
Configuration management using Pydantic for validation.

This module provides type-safe configuration loading and validation
for the handover logic modules and the runner that schedules them.
"""
import os
import re
from pathlib import Path
from typing import Optional, Dict, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from handover_engine.utils.exceptions import ConfigurationError


DECODE_POLICIES = ("argmax", "argmax_with_hold", "cell_id")


def _expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in string values."""
    pattern = r'\$\{([^}]+)\}'

    def replace_var(match):
        return os.environ.get(match.group(1), '')

    return re.sub(pattern, replace_var, value)


class RepositoryConfig(BaseModel):
    """Where terminal and cell state is read from."""
    source_type: Literal["csv", "memory"] = "memory"
    base_path: Optional[Path] = None
    files: Dict[str, str] = Field(
        default_factory=lambda: {
            "terminals": "terminals.csv",
            "cells": "cells.csv",
        }
    )

    @field_validator('base_path', mode='before')
    @classmethod
    def expand_path(cls, v):
        if isinstance(v, str):
            return Path(_expand_env_vars(v))
        return v

    @model_validator(mode='after')
    def check_csv_source(self):
        """CSV repositories need a base path and both file names."""
        if self.source_type == "csv":
            if self.base_path is None:
                raise ValueError("repository.base_path is required for csv source")
            missing = {"terminals", "cells"} - set(self.files)
            if missing:
                raise ValueError(f"repository.files missing keys: {sorted(missing)}")
        return self

    def get_file_path(self, file_key: str) -> Path:
        """Get full path to a state file."""
        if file_key not in self.files:
            raise KeyError(f"Unknown file key: {file_key}. Available: {list(self.files.keys())}")
        return self.base_path / self.files[file_key]


class LoaderParams(BaseModel):
    """Snapshot loading parameters."""
    max_record_age_seconds: Optional[float] = Field(
        None, gt=0.0, description="Drop states whose timestamp is older than this (seconds)"
    )


class DistanceParams(BaseModel):
    """Parameters for the nearest-cell strategy."""
    enabled: bool = True


class LearnedParams(BaseModel):
    """Parameters for the model-driven strategy."""
    model_config = ConfigDict(protected_namespaces=())

    enabled: bool = True
    model_path: Optional[Path] = Field(None, description="Path to the trained scoring artifact")
    decode_policy: Literal["argmax", "argmax_with_hold", "cell_id"] = Field(
        "argmax", description="How the model output maps to a target cell"
    )
    min_score: Optional[float] = Field(None, description="Winning score below this means no handover")
    hold_value: Optional[int] = Field(None, description="cell_id policy: output value meaning no handover")
    inference_timeout_seconds: float = Field(5.0, gt=0.0, description="Bound on a single scoring call")

    @field_validator('model_path', mode='before')
    @classmethod
    def expand_model_path(cls, v):
        if isinstance(v, str):
            v = _expand_env_vars(v)
            return Path(v) if v else None
        return v


class EngineConfig(BaseModel):
    """Complete configuration for one handover logic module."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field("handover-lm", min_length=1, description="Logic module name")
    strategy: Literal["distance", "learned"] = "distance"
    verbose: bool = False
    active: bool = True
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    loader: LoaderParams = Field(default_factory=LoaderParams)
    distance: DistanceParams = Field(default_factory=DistanceParams)
    learned: LearnedParams = Field(default_factory=LearnedParams)

    @model_validator(mode='after')
    def validate_strategy_config(self):
        """The selected strategy must be enabled and fully configured."""
        if self.strategy == "learned":
            if not self.learned.enabled:
                raise ValueError("learned strategy selected but not enabled")
            if self.learned.model_path is None:
                raise ValueError("learned strategy requires 'learned.model_path'")
        elif not self.distance.enabled:
            raise ValueError("distance strategy selected but not enabled")
        return self


def load_config(config_path: Path) -> EngineConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Validated EngineConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If YAML is malformed or its top level is not a mapping
        ValidationError: If config validation fails

    Example:
        >>> config = load_config(Path("config/distance_handover.yaml"))
        >>> print(config.name, config.strategy)
        distance-handover distance
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        try:
            config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

    if config_dict is None:
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(config_dict).__name__}"
        )

    return EngineConfig(**config_dict)


def get_default_config() -> EngineConfig:
    """
    Get default configuration template.

    Returns:
        Distance-strategy EngineConfig reading from an in-memory repository
    """
    return EngineConfig(
        name="distance-handover",
        strategy="distance",
        repository=RepositoryConfig(source_type="memory"),
        loader=LoaderParams(),
        distance=DistanceParams(),
        learned=LearnedParams(enabled=False),
    )
