"""
tonsilatlas-pipeline - TBX21 expression and regulon activity in tonsil B cells.

This package provides:
- Loading of the tonsil atlas with SCENIC activity scores and updated annotations
- Module scores for regulon targets and TF-correlated genes
- Pseudobulk aggregation by donor x annotation
- Inner joins and Pearson correlation of pseudobulk tables
- Boxplot, scatterplot, embedding density and dot plot figures

Example:
    >>> from tonsilatlas_pipeline import create_pipeline
    >>>
    >>> pipeline = create_pipeline("config/default.yaml")
    >>> result = pipeline.run()
    >>> result.correlation_table()
"""

__version__ = "0.1.0"

# Core infrastructure
from tonsilatlas_pipeline.core.config import AnalysisConfig, Config, PlotConfig
from tonsilatlas_pipeline.core.exceptions import (
    EmptyJoinResult,
    LoadError,
    MissingActivityScore,
    MissingObsColumn,
    NoCellsRemaining,
    TonsilAtlasError,
    UnknownAnnotationLabel,
)
from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.core.paths import PathResolver

# Subpackages are imported as needed:
#   from tonsilatlas_pipeline.ingest import load_tonsil_dataset
#   from tonsilatlas_pipeline.aggregation import aggregate_metric, join_pseudobulk
#   from tonsilatlas_pipeline.correlation import pearson_correlation
#   from tonsilatlas_pipeline.plotting import ReportGenerator

# Main Pipeline class
from tonsilatlas_pipeline.pipeline import Pipeline, PipelineResult, create_pipeline

__all__ = [
    # Version
    "__version__",
    # Pipeline
    "Pipeline",
    "PipelineResult",
    "create_pipeline",
    # Config
    "AnalysisConfig",
    "Config",
    "PlotConfig",
    "PathResolver",
    "AnnotationPalette",
    # Errors
    "TonsilAtlasError",
    "LoadError",
    "MissingActivityScore",
    "MissingObsColumn",
    "NoCellsRemaining",
    "UnknownAnnotationLabel",
    "EmptyJoinResult",
]
