"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here and in :mod:`notegraph.domain.rules`;
``notegraph.toml`` only contains overrides. The ``[graph]``, ``[similarity]``
and ``[discovery]`` sections reuse the frozen domain models directly.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from notegraph.domain.rules import DiscoveryConfig, DomainConfig, SimilarityConfig

DEFAULT_DB_PATH = ".notegraph/notegraph.db"


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    path: str = DEFAULT_DB_PATH

    def resolve(self, root: Path) -> Path:
        """Absolute database path; relative paths hang off the workspace root."""
        p = Path(self.path)
        return p if p.is_absolute() else root / p


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    max_retries: int = 3
    workers: int = 2


class NotegraphConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    graph: DomainConfig = Field(default_factory=DomainConfig)
    similarity: SimilarityConfig = Field(default_factory=SimilarityConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
