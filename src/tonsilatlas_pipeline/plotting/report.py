"""
Report generation.

Renders the fixed figure set from pseudobulk tables, joined tables and the
per-cell dataset. A figure whose join came back empty is skipped and
recorded; the other figures are still produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence

from tonsilatlas_pipeline.aggregation.base import PseudobulkTable
from tonsilatlas_pipeline.aggregation.joining import JoinedTable
from tonsilatlas_pipeline.core.config import PlotConfig
from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.correlation.pearson import CorrelationResult
from tonsilatlas_pipeline.ingest.base import TonsilDataset
from tonsilatlas_pipeline.plotting.boxplot import plot_pseudobulk_boxplot
from tonsilatlas_pipeline.plotting.dotplot import dotplot_summary, plot_gene_dotplot
from tonsilatlas_pipeline.plotting.embedding import plot_embedding_density
from tonsilatlas_pipeline.plotting.scatter import plot_correlation_scatter
from tonsilatlas_pipeline.plotting.style import apply_style, safe_name

logger = logging.getLogger(__name__)


@dataclass
class ReportResult:
    """Figures written, figures skipped and tables written beside them."""

    figures: dict[str, Path] = field(default_factory=dict)
    tables: dict[str, Path] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)


class ReportGenerator:
    """
    Writes the figure set to one directory.

    Example:
        >>> report = ReportGenerator("results/figures")
        >>> report.boxplot(pseudobulk["TBX21"])
        >>> report.figures
    """

    def __init__(
        self,
        output_dir: Path | str,
        config: Optional[PlotConfig] = None,
        palette: Optional[AnnotationPalette] = None,
    ):
        self.output_dir = Path(output_dir)
        self.config = config or PlotConfig()
        self.palette = palette or AnnotationPalette()
        self.result = ReportResult()
        apply_style()

    @property
    def figures(self) -> dict[str, Path]:
        return self.result.figures

    def _path(self, name: str) -> Path:
        return self.output_dir / f"{name}.{self.config.format}"

    def _record(self, name: str, path: Path) -> Path:
        self.result.figures[name] = path
        logger.info(f"Saved figure {path}")
        return path

    def skip(self, name: str, reason: str) -> None:
        """Record a figure that could not be produced."""
        self.result.skipped[name] = reason
        logger.warning(f"Skipping figure {name}: {reason}")

    def boxplot(self, table: PseudobulkTable) -> Path:
        name = f"boxplot_{safe_name(table.metric)}"
        path = plot_pseudobulk_boxplot(
            table, self._path(name), self.palette,
            jitter=self.config.jitter, dpi=self.config.dpi,
        )
        return self._record(name, path)

    def scatter(self, joined: JoinedTable, result: CorrelationResult) -> Path:
        name = f"scatter_{safe_name(result.x)}_vs_{safe_name(result.y)}"
        path = plot_correlation_scatter(
            joined, result, self._path(name), self.palette, dpi=self.config.dpi,
        )
        return self._record(name, path)

    def density(self, dataset: TonsilDataset, field: str, basis: str = "umap") -> Path:
        name = f"density_{safe_name(field)}"
        path = plot_embedding_density(
            dataset, field, self._path(name),
            basis=basis,
            grid_size=self.config.density_grid_size,
            bandwidth=self.config.density_bandwidth,
            dpi=self.config.dpi,
        )
        return self._record(name, path)

    def dotplot(
        self,
        dataset: TonsilDataset,
        gene_groups: Mapping[str, Sequence[str]],
        tf: str,
    ) -> Path:
        name = f"dotplot_{safe_name(tf)}_genes"
        path = plot_gene_dotplot(
            dataset, gene_groups, self._path(name), self.palette,
            title=f"{tf}-correlated genes", dpi=self.config.dpi,
        )

        group_of = {g: sign for sign, genes in gene_groups.items() for g in genes}
        summary = dotplot_summary(dataset, list(group_of))
        summary.insert(0, "group", summary["gene"].map(group_of))
        table_path = self.output_dir / f"{name}.csv"
        summary.to_csv(table_path, index=False)
        self.result.tables[name] = table_path
        logger.info(f"Wrote {table_path}")

        return self._record(name, path)

    def generate(
        self,
        dataset: TonsilDataset,
        pseudobulk: Mapping[str, PseudobulkTable],
        joins: Mapping[str, JoinedTable],
        correlations: Mapping[str, CorrelationResult],
        join_errors: Mapping[str, str],
        density_fields: Sequence[str] = (),
        gene_groups: Optional[Mapping[str, Sequence[str]]] = None,
        tf: str = "TBX21",
        basis: str = "umap",
    ) -> ReportResult:
        """
        Render every figure.

        Args:
            dataset: Per-cell data (density and dot plots).
            pseudobulk: Metric -> pseudobulk table (boxplots).
            joins: Join name -> joined table (scatterplots).
            correlations: Join name -> correlation of that join.
            join_errors: Join name -> reason the join or correlation failed.
            density_fields: Per-cell fields to draw densities for.
            gene_groups: Correlation sign -> genes for the dot plot.
            tf: Transcription factor named in the dot plot.
            basis: Embedding for densities.
        """
        for table in pseudobulk.values():
            if len(table) == 0:
                self.skip(f"boxplot_{safe_name(table.metric)}", "no pseudobulk groups")
                continue
            self.boxplot(table)

        for name, reason in join_errors.items():
            self.skip(f"scatter_{safe_name(name)}", reason)
        for name, joined in joins.items():
            if name in correlations:
                self.scatter(joined, correlations[name])

        for field_name in density_fields:
            self.density(dataset, field_name, basis=basis)

        if gene_groups:
            try:
                self.dotplot(dataset, gene_groups, tf)
            except ValueError as e:
                self.skip(f"dotplot_{safe_name(tf)}_genes", str(e))

        return self.result
