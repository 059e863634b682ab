"""
Cross-metric joins of pseudobulk tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from tonsilatlas_pipeline.aggregation.base import PseudobulkTable
from tonsilatlas_pipeline.core.exceptions import EmptyJoinResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class JoinedTable:
    """Pseudobulk metrics side by side for keys present in every input."""

    metrics: tuple[str, ...]
    data: pd.DataFrame
    key_columns: tuple[str, str] = ("donor_id", "annotation")

    def __len__(self) -> int:
        return len(self.data)

    @property
    def name(self) -> str:
        return "_vs_".join(self.metrics)

    @property
    def keys(self) -> set[tuple[str, str]]:
        return set(map(tuple, self.data[list(self.key_columns)].itertuples(index=False)))


def join_pseudobulk(*tables: PseudobulkTable) -> JoinedTable:
    """
    Inner-join pseudobulk tables on (donor, annotation).

    Keys missing from any input are excluded, so the result never has more
    rows than the smallest input.

    Args:
        *tables: Two or more pseudobulk tables with distinct metrics.

    Returns:
        Joined table with one column per metric.

    Raises:
        EmptyJoinResult: No key is shared by every table.
    """
    if len(tables) < 2:
        raise ValueError("At least two pseudobulk tables are required for a join")

    metrics = [t.metric for t in tables]
    if len(set(metrics)) != len(metrics):
        raise ValueError(f"Duplicate metrics in join: {metrics}")

    key_columns = tables[0].key_columns
    for t in tables[1:]:
        if t.key_columns != key_columns:
            raise ValueError(
                f"Key columns differ: {key_columns} vs {t.key_columns} ({t.metric})"
            )

    keys = list(key_columns)
    joined = tables[0].data[keys + [tables[0].metric]]
    for t in tables[1:]:
        joined = joined.merge(
            t.data[keys + [t.metric]], on=keys, how="inner", validate="one_to_one"
        )

    if joined.empty:
        raise EmptyJoinResult(metrics)

    joined = joined.sort_values(keys).reset_index(drop=True)
    logger.info(
        f"Joined {' x '.join(metrics)}: {len(joined)} rows "
        f"(inputs: {', '.join(str(len(t)) for t in tables)})"
    )
    return JoinedTable(metrics=tuple(metrics), data=joined, key_columns=key_columns)
