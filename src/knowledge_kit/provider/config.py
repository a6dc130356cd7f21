# src/knowledge_kit/provider/config.py

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

ENV_PREFIX = "KNOWLEDGE_KIT_"


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for a knowledge provider.

    Immutable. Validated on construction. ``min_chunk_size`` > 0 turns on
    merging of undersized chunks after chunking.
    """

    chunk_size: int = 1000
    chunk_overlap: int = 200
    max_results: int = 10
    min_score: float = 0.5
    min_chunk_size: int = 0

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if self.chunk_overlap < 0:
            raise ValueError("overlap must be >= 0")
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("overlap must be < chunk_size")
        if self.max_results <= 0:
            raise ValueError("max_results must be > 0")
        if not 0.0 <= self.min_score <= 1.0:
            raise ValueError("min_score must be between 0 and 1")
        if self.min_chunk_size < 0:
            raise ValueError("min_chunk_size must be >= 0")

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "ProviderConfig":
        """Build a config from ``{prefix}CHUNK_SIZE`` style variables.

        Explicit keyword arguments win over the environment, the environment
        wins over defaults.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            if overrides.get(f.name) is not None:
                values[f.name] = overrides[f.name]
                continue
            env_value = os.environ.get(f"{prefix}{f.name.upper()}")
            if env_value is not None:
                values[f.name] = float(env_value) if f.type is float else int(env_value)
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ProviderConfig":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)
