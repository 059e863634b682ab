"""
Pseudobulk aggregation for single-cell data.

Provides:
- Pseudobulk means (donor x annotation) of expression, activity and
  module scores
- Inner joins of pseudobulk tables across metrics
"""

from tonsilatlas_pipeline.aggregation.base import (
    AggregationConfig,
    PseudobulkTable,
)
from tonsilatlas_pipeline.aggregation.joining import (
    JoinedTable,
    join_pseudobulk,
)
from tonsilatlas_pipeline.aggregation.pseudobulk import (
    PseudobulkAggregator,
    aggregate_metric,
)

__all__ = [
    # Base
    "AggregationConfig",
    "PseudobulkTable",
    # Pseudobulk
    "PseudobulkAggregator",
    "aggregate_metric",
    # Joins
    "JoinedTable",
    "join_pseudobulk",
]
