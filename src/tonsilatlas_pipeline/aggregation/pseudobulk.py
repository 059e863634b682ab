"""
Pseudobulk aggregation.

Reduces per-cell values to one mean per donor x annotation combination,
creating a "pseudo-bulk" measurement for each combination.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd

from tonsilatlas_pipeline.aggregation.base import AggregationConfig, PseudobulkTable
from tonsilatlas_pipeline.ingest.base import TonsilDataset

logger = logging.getLogger(__name__)


def _exact_mean(values: pd.Series) -> float:
    """Order-independent mean, kept inside [min, max]."""
    arr = values.to_numpy(dtype=float)
    mean = math.fsum(arr) / len(arr)
    # Rounding of the division can step just outside the range
    return float(min(max(mean, arr.min()), arr.max()))


class PseudobulkAggregator:
    """
    Aggregates one per-cell field by donor x annotation.

    Only observed combinations are reported; a donor without cells of a given
    type contributes no row for it.

    Example:
        >>> aggregator = PseudobulkAggregator()
        >>> table = aggregator.aggregate(dataset, "TBX21")
        >>> print(f"Created {len(table)} pseudobulk samples")
    """

    def __init__(self, config: Optional[AggregationConfig] = None):
        """
        Initialize pseudobulk aggregator.

        Args:
            config: Aggregation configuration.
        """
        self.config = config or AggregationConfig()
        if self.config.min_cells < 1:
            raise ValueError(f"min_cells must be >= 1, got {self.config.min_cells}")

    def aggregate_frame(self, frame: pd.DataFrame, metric: str) -> PseudobulkTable:
        """
        Aggregate a long table of per-cell values.

        Args:
            frame: One row per cell with the key columns and `metric`.
            metric: Column to average.

        Returns:
            Pseudobulk table sorted by (donor, annotation).
        """
        keys = self.config.key_columns
        for col in keys + [metric]:
            if col not in frame.columns:
                raise ValueError(f"Column '{col}' not in frame")

        frame = frame[keys + [metric]].copy()
        for col in keys:
            frame[col] = frame[col].astype(str)

        n_missing = int(frame[metric].isna().sum())
        if n_missing:
            logger.warning(f"{metric}: ignoring {n_missing} cells with missing values")
            frame = frame.dropna(subset=[metric])

        if frame.empty:
            data = pd.DataFrame(columns=keys + [metric, "n_cells"])
        else:
            grouped = frame.groupby(keys, sort=True)[metric]
            data = grouped.agg(**{metric: _exact_mean, "n_cells": "size"}).reset_index()

        n_groups = len(data)
        data = data[data["n_cells"] >= self.config.min_cells].reset_index(drop=True)
        data["n_cells"] = data["n_cells"].astype(np.int64)
        data[metric] = data[metric].astype(float)

        n_dropped = n_groups - len(data)
        if n_dropped:
            logger.info(f"{metric}: dropped {n_dropped} groups with < {self.config.min_cells} cells")

        logger.debug(f"{metric}: {len(data)} pseudobulk groups from {len(frame)} cells")
        return PseudobulkTable(
            metric=metric,
            data=data,
            key_columns=(self.config.donor_col, self.config.annotation_col),
            stats={"n_cells_used": len(frame), "n_groups_dropped": n_dropped},
        )

    def aggregate(self, dataset: TonsilDataset, field: str) -> PseudobulkTable:
        """
        Aggregate a field of a dataset.

        Args:
            dataset: Loaded cells.
            field: Gene symbol, activity column or module-score column.

        Returns:
            Pseudobulk table of field means.
        """
        values = dataset.values(field)
        frame = pd.DataFrame({
            self.config.donor_col: dataset.obs[dataset.donor_col].to_numpy(),
            self.config.annotation_col: dataset.obs[dataset.annotation_col].to_numpy(),
            field: values.to_numpy(),
        })
        return self.aggregate_frame(frame, field)


def aggregate_metric(
    dataset: TonsilDataset,
    field: str,
    min_cells: int = 1,
) -> PseudobulkTable:
    """
    Convenience function for pseudobulk aggregation.

    Args:
        dataset: Loaded cells.
        field: Gene symbol or obs column.
        min_cells: Minimum cells per group.

    Returns:
        Pseudobulk table keyed by the dataset's donor and annotation columns.
    """
    config = AggregationConfig(
        annotation_col=dataset.annotation_col,
        donor_col=dataset.donor_col,
        min_cells=min_cells,
    )
    return PseudobulkAggregator(config).aggregate(dataset, field)
