"""
Pipeline configuration management.

Provides dataclass-based configuration with validation and serialization.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Any
import os

import yaml


@dataclass
class AnalysisConfig:
    """Loader, scoring and aggregation parameters."""

    assay: str = "3P"
    """Assay tag to keep; cells from other modalities are dropped."""

    assay_col: str = "assay"
    """Column in obs holding the assay tag."""

    donor_col: str = "donor_id"
    """Column in obs holding the donor identifier."""

    annotation_col: str = "annotation"
    """Column in obs that receives the updated annotation label."""

    target_gene: str = "TBX21"
    """Gene whose expression is characterised."""

    regulons: list[str] = field(default_factory=lambda: ["TBX21(+)"])
    """Regulon columns attached from the activity table."""

    module_score_name: str = "TBX21_targets_score"
    """Obs column for the regulon-target module score."""

    min_cells: int = 1
    """Minimum cells required for a pseudobulk group."""

    layer: Optional[str] = None
    """Layer to read expression from (None for .X)."""

    basis: str = "umap"
    """Embedding used for density plots (obsm key without the X_ prefix)."""

    drop_unknown_labels: bool = False
    """Drop cells whose label is not in the palette instead of failing."""


@dataclass
class PlotConfig:
    """Figure output settings."""

    dpi: int = 300
    """Resolution for saved figures."""

    format: str = "png"
    """Image format for saved figures."""

    density_grid_size: int = 200
    """Bins per axis for embedding density estimation."""

    density_bandwidth: float = 2.0
    """Gaussian smoothing width in grid bins."""

    jitter: float = 0.2
    """Horizontal jitter for boxplot points."""


@dataclass
class Config:
    """
    Main pipeline configuration.

    Example:
        >>> config = Config.from_yaml("config/default.yaml")
        >>> config.analysis.target_gene
        'TBX21'
    """

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    plotting: PlotConfig = field(default_factory=PlotConfig)

    # Output settings
    output_dir: Optional[Path] = None
    """Directory for figures (overrides the path resolver)."""

    def __post_init__(self):
        """Convert paths and validate values."""
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)

        if self.analysis.min_cells < 1:
            raise ValueError(f"min_cells must be >= 1, got {self.analysis.min_cells}")
        if not self.analysis.regulons:
            raise ValueError("At least one regulon is required")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        d = asdict(self)
        for key, value in d.items():
            if isinstance(value, Path):
                d[key] = str(value)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Config":
        """Create from dictionary."""
        d = dict(d)
        if "analysis" in d and isinstance(d["analysis"], dict):
            d["analysis"] = AnalysisConfig(**d["analysis"])
        if "plotting" in d and isinstance(d["plotting"], dict):
            d["plotting"] = PlotConfig(**d["plotting"])
        return cls(**d)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load the `analysis` and `plotting` sections of a YAML file."""
        path = Path(path)
        with open(path) as f:
            d = yaml.safe_load(f) or {}
        return cls.from_dict({
            key: d[key] for key in ("analysis", "plotting") if key in d
        })

    @classmethod
    def from_env(cls, base: Optional["Config"] = None) -> "Config":
        """
        Apply environment variables on top of a configuration.

        TONSILATLAS_ASSAY and TONSILATLAS_TARGET_GENE replace the matching
        analysis values when set.
        """
        d = (base or cls()).to_dict()
        for env, key in (
            ("TONSILATLAS_ASSAY", "assay"),
            ("TONSILATLAS_TARGET_GENE", "target_gene"),
        ):
            value = os.getenv(env)
            if value:
                d["analysis"][key] = value
        return cls.from_dict(d)
