"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, bibgraph.toml only contains
overrides. An empty file (or no file at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from bibgraph.domain.types import Linkage

# --- bibgraph.toml sections ---


class ClusteringConfig(BaseModel):
    """[clustering] section — Louvain, Leiden, label propagation, Infomap."""

    model_config = {"frozen": True}

    resolution: float = Field(default=1.0, gt=0)
    max_iterations: int = Field(default=100, ge=1)
    min_improvement: float = Field(default=1e-7, ge=0)
    seed: int | None = None


class SpectralConfig(BaseModel):
    """[spectral] section."""

    model_config = {"frozen": True}

    k: int = Field(default=2, ge=2)
    max_iterations: int = Field(default=100, ge=1)
    min_improvement: float = Field(default=1e-9, ge=0)
    n_init: int = Field(default=10, ge=1)
    seed: int = 42
    max_nodes: int = Field(default=5000, ge=1)


class HierarchicalConfig(BaseModel):
    """[hierarchical] section."""

    model_config = {"frozen": True}

    linkage: Linkage = Linkage.AVERAGE
    clusters: int = Field(default=2, ge=1)
    max_nodes: int = Field(default=5000, ge=1)


class PathfindingConfig(BaseModel):
    """[pathfinding] section."""

    model_config = {"frozen": True}

    weight_property: str | None = None
    invert: bool = False
    epsilon: float = Field(default=1e-9, gt=0)
    default_weight: float = Field(default=1.0, ge=0)


class MotifsConfig(BaseModel):
    """[motifs] section."""

    model_config = {"frozen": True}

    min_degree: int = Field(default=3, ge=1)
    min_count: int = Field(default=1, ge=1)
    min_shared: int = Field(default=1, ge=1)


class DecompositionConfig(BaseModel):
    """[decomposition] section."""

    model_config = {"frozen": True}

    truss_k: int = Field(default=3, ge=2)
    max_iterations: int = Field(default=200, ge=1)
