"""
Dot plots of a gene list per annotation.

Dot size is the fraction of cells expressing the gene (value > 0) and colour
is the mean expression over all cells of the group.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import scanpy as sc

from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.ingest.base import TonsilDataset
from tonsilatlas_pipeline.scoring.module_score import present_genes


def dotplot_summary(dataset: TonsilDataset, genes: Sequence[str]) -> pd.DataFrame:
    """
    Fraction expressing and mean expression per annotation and gene.

    Returns:
        Long DataFrame with columns annotation, gene, fraction_expressing,
        mean_expression.
    """
    genes = present_genes(dataset, genes)
    labels = dataset.obs[dataset.annotation_col]

    rows = []
    for gene in genes:
        values = dataset.values(gene)
        frame = pd.DataFrame({"annotation": labels.to_numpy(), "value": values.to_numpy()})
        grouped = frame.groupby("annotation", observed=True, sort=False)["value"]
        for annotation, group in grouped:
            arr = group.to_numpy()
            rows.append({
                "annotation": annotation,
                "gene": gene,
                "fraction_expressing": float(np.mean(arr > 0)),
                "mean_expression": float(arr.mean()),
            })
    return pd.DataFrame(rows, columns=["annotation", "gene", "fraction_expressing", "mean_expression"])


def plot_gene_dotplot(
    dataset: TonsilDataset,
    gene_groups: Mapping[str, Sequence[str]],
    path: Path,
    palette: Optional[AnnotationPalette] = None,
    title: Optional[str] = None,
    dpi: int = 300,
) -> Path:
    """
    Dot plot of grouped genes (e.g. positive/negative) by annotation.

    Genes missing from the dataset are left out; groups left empty are
    dropped.
    """
    palette = palette or AnnotationPalette()
    var_names = set(dataset.gene_names)
    groups = {
        name: [g for g in genes if g in var_names]
        for name, genes in gene_groups.items()
    }
    groups = {name: genes for name, genes in groups.items() if genes}
    if not groups:
        raise ValueError("None of the dot plot genes are in the dataset")

    adata = dataset.adata
    annotation = adata.obs[dataset.annotation_col].astype(str)
    order = palette.order(annotation.unique())
    all_genes = list(dict.fromkeys(g for genes in groups.values() for g in genes))
    scratch = adata[:, all_genes].copy()
    scratch.obs[dataset.annotation_col] = pd.Categorical(annotation, categories=order)

    dp = sc.pl.dotplot(
        scratch,
        var_names=groups,
        groupby=dataset.annotation_col,
        categories_order=order,
        layer=dataset.layer,
        use_raw=False,
        title=title,
        return_fig=True,
    )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    dp.savefig(path, dpi=dpi)
    plt.close(dp.fig)
    return path
