"""
Figures for the TBX21 B-cell report.

All rendering uses the non-interactive Agg backend.
"""

# style selects the Agg backend, so it is imported before pyplot users
from tonsilatlas_pipeline.plotting.style import apply_style, safe_name
from tonsilatlas_pipeline.plotting.boxplot import boxplot_order, plot_pseudobulk_boxplot
from tonsilatlas_pipeline.plotting.density import weighted_embedding_density
from tonsilatlas_pipeline.plotting.dotplot import dotplot_summary, plot_gene_dotplot
from tonsilatlas_pipeline.plotting.embedding import embedding_density, plot_embedding_density
from tonsilatlas_pipeline.plotting.report import ReportGenerator, ReportResult
from tonsilatlas_pipeline.plotting.scatter import plot_correlation_scatter

__all__ = [
    "boxplot_order",
    "plot_pseudobulk_boxplot",
    "weighted_embedding_density",
    "dotplot_summary",
    "plot_gene_dotplot",
    "embedding_density",
    "plot_embedding_density",
    "ReportGenerator",
    "ReportResult",
    "plot_correlation_scatter",
    "apply_style",
    "safe_name",
]
