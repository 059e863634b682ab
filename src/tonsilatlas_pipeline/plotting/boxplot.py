"""
Pseudobulk boxplots per annotation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import seaborn as sns

from tonsilatlas_pipeline.aggregation.base import PseudobulkTable
from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.plotting.style import save_figure


def boxplot_order(table: PseudobulkTable) -> list[str]:
    """Annotations ordered by ascending mean of their pseudobulk values."""
    means = table.group_means()
    # Stable tie-break on the label
    ordered = sorted(means.items(), key=lambda item: (item[1], str(item[0])))
    return [label for label, _ in ordered]


def plot_pseudobulk_boxplot(
    table: PseudobulkTable,
    path: Path,
    palette: Optional[AnnotationPalette] = None,
    jitter: float = 0.2,
    ylabel: Optional[str] = None,
    dpi: int = 300,
) -> Path:
    """
    Boxplot with one jittered point per donor.

    Args:
        table: Pseudobulk table of one metric.
        path: Output image path.
        palette: Annotation colours.
        jitter: Horizontal jitter of donor points.
        ylabel: Y axis label (defaults to the metric name).
        dpi: Output resolution.

    Returns:
        Path of the saved figure.
    """
    palette = palette or AnnotationPalette()
    annotation_col = table.key_columns[1]
    order = boxplot_order(table)
    colors = palette.colors_for(order)

    fig, ax = plt.subplots(figsize=(max(4, 0.6 * len(order) + 2), 4.5))
    sns.boxplot(
        data=table.data,
        x=annotation_col,
        y=table.metric,
        hue=annotation_col,
        order=order,
        hue_order=order,
        palette=colors,
        showfliers=False,
        legend=False,
        ax=ax,
    )
    sns.stripplot(
        data=table.data,
        x=annotation_col,
        y=table.metric,
        order=order,
        color="black",
        size=3,
        jitter=jitter,
        ax=ax,
    )
    ax.set_xlabel("")
    ax.set_ylabel(ylabel or table.metric)
    ax.set_title(f"{table.metric} (pseudobulk, n = {len(table)})")
    ax.tick_params(axis="x", rotation=60)
    for tick in ax.get_xticklabels():
        tick.set_horizontalalignment("right")

    fig.tight_layout()
    return save_figure(fig, path, dpi=dpi)
