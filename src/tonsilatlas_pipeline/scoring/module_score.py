"""
Per-cell gene-set module scores.

Scoring itself is delegated to scanpy.tl.score_genes (average expression of
the set minus a matched random control set).
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import anndata as ad
import pandas as pd
import scanpy as sc

from tonsilatlas_pipeline.ingest.base import TonsilDataset

logger = logging.getLogger(__name__)


def present_genes(dataset: TonsilDataset, genes: Sequence[str], name: str = "") -> list[str]:
    """Genes of the set found in the dataset; missing ones are logged."""
    var_names = set(dataset.gene_names)
    present = [g for g in dict.fromkeys(genes) if g in var_names]
    n_missing = len(set(genes)) - len(present)
    if n_missing:
        logger.warning(f"{name or 'gene set'}: {n_missing} gene(s) not in dataset")
    if not present:
        raise ValueError(f"{name or 'gene set'}: none of the genes are in the dataset")
    return present


def score_gene_sets(
    dataset: TonsilDataset,
    gene_sets: Mapping[str, Sequence[str]],
    ctrl_size: int = 50,
    n_bins: int = 25,
    random_state: int = 0,
) -> TonsilDataset:
    """
    Add one module-score column per gene set.

    Args:
        dataset: Loaded cells.
        gene_sets: Score name -> genes.
        ctrl_size: Control genes sampled per expression bin.
        n_bins: Expression bins for control gene selection.
        random_state: Seed for control gene sampling.

    Returns:
        New dataset with the score columns attached.
    """
    adata = dataset.adata
    X = adata.layers[dataset.layer] if dataset.layer is not None else adata.X

    # Scratch object so scanpy writes its scores without touching the dataset
    scratch = ad.AnnData(
        X=X,
        obs=pd.DataFrame(index=adata.obs_names.copy()),
        var=pd.DataFrame(index=adata.var_names.copy()),
    )

    for name, genes in gene_sets.items():
        present = present_genes(dataset, genes, name)
        sc.tl.score_genes(
            scratch,
            present,
            ctrl_size=ctrl_size,
            n_bins=n_bins,
            score_name=name,
            random_state=random_state,
            use_raw=False,
        )
        logger.info(f"Scored {name} with {len(present)} genes")

    return dataset.with_scores(scratch.obs[list(gene_sets)])
