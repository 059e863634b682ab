"""
Gene-set module scoring.
"""

from tonsilatlas_pipeline.scoring.gene_sets import (
    build_gene_sets,
    correlated_genes,
    dotplot_genes,
    regulon_targets,
)
from tonsilatlas_pipeline.scoring.module_score import present_genes, score_gene_sets

__all__ = [
    "build_gene_sets",
    "correlated_genes",
    "dotplot_genes",
    "regulon_targets",
    "present_genes",
    "score_gene_sets",
]
