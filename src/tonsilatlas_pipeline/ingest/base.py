"""
Base data structures for loaded single-cell data.

Defines TonsilDataset, the consistent cell set every later stage consumes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

import anndata as ad
import numpy as np
import pandas as pd
from scipy import sparse as sp


@dataclass(frozen=True, eq=False)
class TonsilDataset:
    """
    Loaded cells with every required field attached.

    Each retained cell carries a donor id, an assay tag, an annotation label,
    expression values and one score per attached activity field. Methods that
    add fields return a new dataset over a copied AnnData.
    """

    adata: ad.AnnData
    """Cells x genes, with obs metadata and obsm embeddings."""

    donor_col: str = "donor_id"
    """Column for donor identifiers."""

    annotation_col: str = "annotation"
    """Column for annotation labels."""

    assay_col: str = "assay"
    """Column for assay tags."""

    activity_fields: tuple[str, ...] = ()
    """Obs columns holding regulon activity scores."""

    score_fields: tuple[str, ...] = ()
    """Obs columns holding module scores."""

    layer: Optional[str] = None
    """Layer to read expression from (None for .X)."""

    @property
    def n_cells(self) -> int:
        return self.adata.n_obs

    @property
    def obs(self) -> pd.DataFrame:
        return self.adata.obs

    @property
    def cell_ids(self) -> list[str]:
        return list(self.adata.obs_names)

    @property
    def gene_names(self) -> list[str]:
        return list(self.adata.var_names)

    def values(self, field: str) -> pd.Series:
        """
        Per-cell values of an obs column or a gene.

        Args:
            field: Obs column name (activity, module score) or gene symbol.

        Returns:
            Float series indexed by cell id.
        """
        if field in self.obs.columns:
            return self.obs[field].astype(float).rename(field)

        if field not in self.adata.var_names:
            raise KeyError(f"Field '{field}' is neither an obs column nor a gene")

        X = self.adata.layers[self.layer] if self.layer is not None else self.adata.X
        col = X[:, self.adata.var_names.get_loc(field)]
        if sp.issparse(col):
            col = col.toarray()
        return pd.Series(
            np.asarray(col, dtype=float).ravel(),
            index=self.adata.obs_names,
            name=field,
        )

    def embedding(self, basis: str = "umap") -> np.ndarray:
        """Precomputed 2-D coordinates for each cell."""
        key = basis if basis.startswith("X_") else f"X_{basis}"
        if key not in self.adata.obsm:
            raise KeyError(f"Embedding '{key}' not found in obsm")
        coords = np.asarray(self.adata.obsm[key])[:, :2]
        return coords.astype(float)

    def with_scores(self, scores: pd.DataFrame) -> "TonsilDataset":
        """
        Return a new dataset with module-score columns added.

        Args:
            scores: DataFrame indexed by cell id, one column per score.
        """
        if not scores.index.equals(self.adata.obs_names):
            scores = scores.reindex(self.adata.obs_names)
        adata = self.adata.copy()
        for name in scores.columns:
            adata.obs[name] = scores[name].to_numpy(dtype=float)
        new_fields = tuple(f for f in scores.columns if f not in self.score_fields)
        return replace(self, adata=adata, score_fields=self.score_fields + new_fields)

    def summary(self) -> dict[str, Any]:
        """Get summary statistics about the dataset."""
        return {
            "n_cells": self.n_cells,
            "n_genes": self.adata.n_vars,
            "n_donors": self.obs[self.donor_col].nunique(),
            "n_annotations": self.obs[self.annotation_col].nunique(),
            "activity_fields": list(self.activity_fields),
            "score_fields": list(self.score_fields),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_cells={self.n_cells}, n_genes={self.adata.n_vars})"
