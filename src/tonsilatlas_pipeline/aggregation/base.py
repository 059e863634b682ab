"""
Base structures for pseudobulk aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd


@dataclass
class AggregationConfig:
    """Configuration for pseudobulk aggregation."""

    annotation_col: str = "annotation"
    """Column for annotation labels."""

    donor_col: str = "donor_id"
    """Column for donor identifiers."""

    min_cells: int = 1
    """Minimum cells required for a group to be reported."""

    @property
    def key_columns(self) -> list[str]:
        return [self.donor_col, self.annotation_col]


@dataclass(frozen=True, eq=False)
class PseudobulkTable:
    """
    One summary value per observed (donor, annotation) pair.

    `data` has the two key columns, a column named after the metric holding
    the group mean, and `n_cells`. Rows are sorted by key.
    """

    metric: str
    """Name of the aggregated field."""

    data: pd.DataFrame
    """Key columns, metric mean and n_cells per group."""

    key_columns: tuple[str, str] = ("donor_id", "annotation")
    """(donor column, annotation column)."""

    stats: dict[str, Any] = field(default_factory=dict, compare=False)
    """Additional statistics (cells used, groups dropped)."""

    def __len__(self) -> int:
        return len(self.data)

    @property
    def keys(self) -> set[tuple[str, str]]:
        """Set of (donor, annotation) pairs."""
        return set(map(tuple, self.data[list(self.key_columns)].itertuples(index=False)))

    def to_series(self) -> pd.Series:
        """Metric means indexed by (donor, annotation)."""
        return self.data.set_index(list(self.key_columns))[self.metric]

    def group_means(self) -> pd.Series:
        """Mean of the pseudobulk values per annotation, ascending."""
        annotation_col = self.key_columns[1]
        return self.data.groupby(annotation_col, sort=False)[self.metric].mean().sort_values()
