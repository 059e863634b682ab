"""
Embedding density plots of per-cell values.
"""

from __future__ import annotations

from pathlib import Path

import anndata as ad
import pandas as pd
import scanpy as sc

from tonsilatlas_pipeline.ingest.base import TonsilDataset
from tonsilatlas_pipeline.plotting.density import weighted_embedding_density
from tonsilatlas_pipeline.plotting.style import save_figure


def embedding_density(
    dataset: TonsilDataset,
    field: str,
    basis: str = "umap",
    grid_size: int = 200,
    bandwidth: float = 2.0,
) -> pd.Series:
    """Per-cell weighted density of `field` over the embedding."""
    density = weighted_embedding_density(
        dataset.embedding(basis),
        dataset.values(field).to_numpy(),
        grid_size=grid_size,
        bandwidth=bandwidth,
    )
    return pd.Series(density, index=dataset.adata.obs_names, name=f"{field}_density")


def plot_embedding_density(
    dataset: TonsilDataset,
    field: str,
    path: Path,
    basis: str = "umap",
    grid_size: int = 200,
    bandwidth: float = 2.0,
    dpi: int = 300,
) -> Path:
    """
    Colour cells on the embedding by the density of `field`.

    Returns:
        Path of the saved figure.
    """
    density = embedding_density(dataset, field, basis, grid_size, bandwidth)
    key = basis if basis.startswith("X_") else f"X_{basis}"

    scratch = ad.AnnData(
        obs=pd.DataFrame({density.name: density.to_numpy()}, index=dataset.adata.obs_names),
        obsm={key: dataset.embedding(basis)},
    )
    ax = sc.pl.embedding(
        scratch,
        basis=key,
        color=density.name,
        color_map="viridis",
        frameon=False,
        title=f"{field} density",
        show=False,
    )
    return save_figure(ax.figure, path, dpi=dpi)
