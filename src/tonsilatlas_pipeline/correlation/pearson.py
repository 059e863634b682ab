"""
Pearson correlation between pseudobulk metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import numpy as np
import pandas as pd
from scipy import stats

from tonsilatlas_pipeline.aggregation.joining import JoinedTable


@dataclass(frozen=True)
class CorrelationResult:
    """Result of a Pearson correlation with its linear fit."""

    x: str
    """Metric on the x axis."""

    y: str
    """Metric on the y axis."""

    r: float
    """Pearson correlation coefficient."""

    pvalue: float
    """Two-sided p-value."""

    n: int
    """Number of (donor, annotation) pairs used."""

    slope: float
    """Slope of the least-squares line y ~ x."""

    intercept: float
    """Intercept of the least-squares line y ~ x."""

    def label(self) -> str:
        """Text shown on scatterplots."""
        return f"R = {self.r:.2f}, p = {self.pvalue:.2g}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "r": self.r,
            "pvalue": self.pvalue,
            "n": self.n,
            "slope": self.slope,
            "intercept": self.intercept,
        }


class PearsonCorrelator:
    """
    Pearson correlation over the rows of a joined pseudobulk table.

    Example:
        >>> correlator = PearsonCorrelator()
        >>> result = correlator.correlate(joined, "TBX21", "TBX21(+)")
        >>> print(result.label())
    """

    def correlate(
        self,
        joined: Union[JoinedTable, pd.DataFrame],
        x: str,
        y: str,
    ) -> CorrelationResult:
        """
        Correlate two metric columns.

        Args:
            joined: Joined pseudobulk table.
            x: First metric.
            y: Second metric.

        Returns:
            Correlation coefficient, p-value and fitted line.
        """
        data = joined.data if isinstance(joined, JoinedTable) else joined
        for col in (x, y):
            if col not in data.columns:
                raise KeyError(f"Metric '{col}' not in joined table")

        xv = data[x].to_numpy(dtype=float)
        yv = data[y].to_numpy(dtype=float)
        return self.correlate_arrays(xv, yv, x=x, y=y)

    def correlate_arrays(
        self,
        xv: np.ndarray,
        yv: np.ndarray,
        x: str = "x",
        y: str = "y",
    ) -> CorrelationResult:
        """Correlate two aligned vectors."""
        if len(xv) != len(yv):
            raise ValueError(f"Length mismatch: {len(xv)} vs {len(yv)}")
        if len(xv) < 3:
            raise ValueError(f"Need at least 3 pairs to correlate {x} and {y}, got {len(xv)}")
        if np.ptp(xv) == 0 or np.ptp(yv) == 0:
            raise ValueError(f"Cannot correlate constant input ({x} vs {y})")

        r, pvalue = stats.pearsonr(xv, yv)
        fit = stats.linregress(xv, yv)

        return CorrelationResult(
            x=x,
            y=y,
            r=float(r),
            pvalue=float(pvalue),
            n=len(xv),
            slope=float(fit.slope),
            intercept=float(fit.intercept),
        )


def pearson_correlation(
    joined: Union[JoinedTable, pd.DataFrame],
    x: str,
    y: str,
) -> CorrelationResult:
    """
    Compute Pearson correlation between two joined metrics.

    Convenience function for PearsonCorrelator.
    """
    return PearsonCorrelator().correlate(joined, x, y)
