"""
Scatterplots of joined pseudobulk metrics with a linear fit.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from tonsilatlas_pipeline.aggregation.joining import JoinedTable
from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.correlation.pearson import CorrelationResult
from tonsilatlas_pipeline.plotting.style import save_figure


def plot_correlation_scatter(
    joined: JoinedTable,
    result: CorrelationResult,
    path: Path,
    palette: Optional[AnnotationPalette] = None,
    dpi: int = 300,
) -> Path:
    """
    One point per (donor, annotation), coloured by annotation.

    The least-squares line and the Pearson R / p-value from `result` are
    drawn on top.
    """
    palette = palette or AnnotationPalette()
    annotation_col = joined.key_columns[1]
    data = joined.data
    order = palette.order(data[annotation_col].unique())

    fig, ax = plt.subplots(figsize=(6, 4.5))
    sns.scatterplot(
        data=data,
        x=result.x,
        y=result.y,
        hue=annotation_col,
        hue_order=order,
        palette=palette.colors_for(order),
        edgecolor="black",
        linewidth=0.3,
        s=30,
        ax=ax,
    )

    x_line = np.linspace(data[result.x].min(), data[result.x].max(), 100)
    ax.plot(x_line, result.slope * x_line + result.intercept, "k--", linewidth=1.5, alpha=0.7)
    ax.text(
        0.02, 0.98, f"{result.label()}, n = {result.n}",
        transform=ax.transAxes, ha="left", va="top", fontsize=9,
    )

    ax.set_xlabel(result.x)
    ax.set_ylabel(result.y)
    ax.legend(bbox_to_anchor=(1.02, 1), loc="upper left", frameon=False, title=None)

    fig.tight_layout()
    return save_figure(fig, path, dpi=dpi)
