"""
Gene sets derived from the regulon membership table and the TF gene list.
"""

from __future__ import annotations

import logging

import pandas as pd

logger = logging.getLogger(__name__)


def regulon_targets(membership: pd.DataFrame, regulon: str) -> list[str]:
    """Genes belonging to a regulon, in table order."""
    if regulon not in membership.columns:
        raise KeyError(f"Regulon '{regulon}' not in membership table")
    targets = membership.index[membership[regulon].astype(bool)].tolist()
    if not targets:
        raise ValueError(f"Regulon '{regulon}' has no target genes")
    return targets


def correlated_genes(gene_list: pd.DataFrame, tf: str, sign: str) -> list[str]:
    """Genes whose expression correlates with `tf` in the given direction."""
    mask = (gene_list["tf"] == tf) & (gene_list["correlation"] == sign)
    return gene_list.loc[mask, "gene"].drop_duplicates().tolist()


def dotplot_genes(gene_list: pd.DataFrame, tf: str) -> dict[str, list[str]]:
    """
    Positive and negative genes of a TF, for grouped dot plots.

    Empty groups are left out.
    """
    groups = {
        sign: correlated_genes(gene_list, tf, sign)
        for sign in ("positive", "negative")
    }
    groups = {sign: genes for sign, genes in groups.items() if genes}
    if not groups:
        raise ValueError(f"No genes listed for TF '{tf}'")
    return groups


def build_gene_sets(
    membership: pd.DataFrame,
    gene_list: pd.DataFrame,
    tf: str,
    regulon: str,
    target_score_name: str,
) -> dict[str, list[str]]:
    """
    Gene sets scored per cell.

    Returns:
        Mapping score name -> genes: the regulon targets under
        `target_score_name`, plus `<tf>_positive_score` and
        `<tf>_negative_score` when the gene list has genes for them.
    """
    gene_sets = {target_score_name: regulon_targets(membership, regulon)}
    for sign in ("positive", "negative"):
        genes = correlated_genes(gene_list, tf, sign)
        if genes:
            gene_sets[f"{tf}_{sign}_score"] = genes

    logger.info(
        "Gene sets: " + ", ".join(f"{name} ({len(genes)})" for name, genes in gene_sets.items())
    )
    return gene_sets
