"""
Correlation analysis between pseudobulk metrics.
"""

from tonsilatlas_pipeline.correlation.pearson import (
    CorrelationResult,
    PearsonCorrelator,
    pearson_correlation,
)

__all__ = [
    "CorrelationResult",
    "PearsonCorrelator",
    "pearson_correlation",
]
