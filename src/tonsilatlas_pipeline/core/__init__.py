"""
Core infrastructure for tonsilatlas-pipeline.

Provides:
- Configuration management
- Project-root path resolution
- Error taxonomy
- Annotation palette
"""

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
from tonsilatlas_pipeline.core.palette import AnnotationPalette, BCELL_COLORS
from tonsilatlas_pipeline.core.paths import PathResolver, project_root

__all__ = [
    "AnalysisConfig",
    "Config",
    "PlotConfig",
    "EmptyJoinResult",
    "LoadError",
    "MissingActivityScore",
    "MissingObsColumn",
    "NoCellsRemaining",
    "TonsilAtlasError",
    "UnknownAnnotationLabel",
    "AnnotationPalette",
    "BCELL_COLORS",
    "PathResolver",
    "project_root",
]
