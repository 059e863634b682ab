"""
Main Pipeline class that wires the analysis stages together.

Load -> module scores -> pseudobulk -> joins/correlations -> figures.
Each stage takes the previous stage's value and returns a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import logging

import pandas as pd

from tonsilatlas_pipeline.aggregation.base import AggregationConfig, PseudobulkTable
from tonsilatlas_pipeline.aggregation.joining import JoinedTable, join_pseudobulk
from tonsilatlas_pipeline.aggregation.pseudobulk import PseudobulkAggregator
from tonsilatlas_pipeline.core.config import Config
from tonsilatlas_pipeline.core.exceptions import EmptyJoinResult
from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.core.paths import PathResolver
from tonsilatlas_pipeline.correlation.pearson import CorrelationResult, PearsonCorrelator
from tonsilatlas_pipeline.ingest.base import TonsilDataset
from tonsilatlas_pipeline.ingest.loader import load_tonsil_dataset
from tonsilatlas_pipeline.ingest.tables import read_gene_list, read_regulon_membership
from tonsilatlas_pipeline.plotting.report import ReportGenerator
from tonsilatlas_pipeline.plotting.style import safe_name
from tonsilatlas_pipeline.scoring.gene_sets import build_gene_sets, dotplot_genes
from tonsilatlas_pipeline.scoring.module_score import score_gene_sets

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of pipeline execution."""

    dataset: Optional[TonsilDataset] = None
    pseudobulk: dict[str, PseudobulkTable] = field(default_factory=dict)
    joins: dict[str, JoinedTable] = field(default_factory=dict)
    correlations: dict[str, CorrelationResult] = field(default_factory=dict)
    join_errors: dict[str, str] = field(default_factory=dict)
    scoring_errors: dict[str, str] = field(default_factory=dict)
    figures: dict[str, Path] = field(default_factory=dict)
    skipped_figures: dict[str, str] = field(default_factory=dict)
    tables: dict[str, Path] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)

    def correlation_table(self) -> pd.DataFrame:
        """One row per successful correlation."""
        return pd.DataFrame([r.to_dict() for r in self.correlations.values()])


class Pipeline:
    """Runs the TBX21 naive/memory B-cell analysis.

    Example:
        >>> from tonsilatlas_pipeline import Pipeline, PathResolver
        >>>
        >>> pipeline = Pipeline(resolver=PathResolver())
        >>> result = pipeline.run()
        >>> result.correlation_table()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        resolver: Optional[PathResolver] = None,
        palette: Optional[AnnotationPalette] = None,
    ):
        """Initialize pipeline.

        Parameters
        ----------
        config : Config, optional
            Pipeline configuration
        resolver : PathResolver, optional
            Input and output path resolver (needed by `run`)
        palette : AnnotationPalette, optional
            Annotation palette (defaults to the B-cell palette)
        """
        self.config = config or Config()
        self.resolver = resolver
        self.palette = palette or AnnotationPalette()

        analysis = self.config.analysis
        self.aggregator = PseudobulkAggregator(AggregationConfig(
            annotation_col=analysis.annotation_col,
            donor_col=analysis.donor_col,
            min_cells=analysis.min_cells,
        ))
        self.correlator = PearsonCorrelator()

    def run(self, output_dir: Optional[Path] = None) -> PipelineResult:
        """Load every input through the path resolver and run all stages.

        Parameters
        ----------
        output_dir : Path, optional
            Figure directory; defaults to config.output_dir, then the
            resolver's figures path.
        """
        if self.resolver is None:
            raise ValueError("Pipeline.run needs a PathResolver")

        resolver = self.resolver
        logger.info("Loading dataset...")
        dataset = load_tonsil_dataset(
            resolver.tonsil_h5ad,
            resolver.scenic_auc,
            resolver.annotation,
            config=self.config.analysis,
            palette=self.palette,
        )
        membership = read_regulon_membership(resolver.regulons)
        gene_list = read_gene_list(resolver.gene_list)

        output_dir = output_dir or self.config.output_dir or resolver.figures
        return self.process(dataset, membership, gene_list, output_dir=output_dir)

    def process(
        self,
        dataset: TonsilDataset,
        membership: Optional[pd.DataFrame] = None,
        gene_list: Optional[pd.DataFrame] = None,
        output_dir: Optional[Path] = None,
    ) -> PipelineResult:
        """Run scoring, aggregation, joins, correlations and figures.

        Parameters
        ----------
        dataset : TonsilDataset
            Loaded cells
        membership : pd.DataFrame, optional
            Regulon membership; enables the regulon-target module score
        gene_list : pd.DataFrame, optional
            TF-correlated genes; enables signed module scores and the dot plot
        output_dir : Path, optional
            Figure directory; figures are skipped when None

        Returns
        -------
        PipelineResult
            Results from all stages
        """
        analysis = self.config.analysis
        result = PipelineResult()

        # Module scores; a failure here only costs the score-derived outputs
        gene_groups = None
        if membership is not None and gene_list is not None:
            try:
                gene_sets = build_gene_sets(
                    membership,
                    gene_list,
                    tf=analysis.target_gene,
                    regulon=analysis.regulons[0],
                    target_score_name=analysis.module_score_name,
                )
                dataset = score_gene_sets(dataset, gene_sets)
            except (KeyError, ValueError) as e:
                logger.warning(f"Module scores skipped: {e}")
                result.scoring_errors["module_scores"] = str(e)
            try:
                gene_groups = dotplot_genes(gene_list, analysis.target_gene)
            except ValueError as e:
                logger.warning(f"Dot plot genes unavailable: {e}")
                result.scoring_errors["dotplot_genes"] = str(e)
        result.dataset = dataset

        # Pseudobulk
        metrics = [analysis.target_gene, *dataset.activity_fields, *dataset.score_fields]
        for metric in metrics:
            result.pseudobulk[metric] = self.aggregator.aggregate(dataset, metric)
            logger.info(f"Pseudobulk {metric}: {len(result.pseudobulk[metric])} groups")

        # Joins and correlations, each against expression
        expression = result.pseudobulk[analysis.target_gene]
        for metric in metrics[1:]:
            name = f"{analysis.target_gene}_vs_{metric}"
            try:
                joined = join_pseudobulk(expression, result.pseudobulk[metric])
                result.joins[name] = joined
                result.correlations[name] = self.correlator.correlate(
                    joined, analysis.target_gene, metric
                )
            except (EmptyJoinResult, ValueError) as e:
                logger.warning(f"{name}: {e}")
                result.join_errors[name] = str(e)

        for name, corr in result.correlations.items():
            logger.info(f"{name}: {corr.label()}, n = {corr.n}")

        # Figures
        if output_dir is not None:
            report = ReportGenerator(output_dir, config=self.config.plotting, palette=self.palette)
            target = safe_name(analysis.target_gene)
            score_error = result.scoring_errors.get("module_scores")
            if score_error:
                score = safe_name(analysis.module_score_name)
                for name in (f"boxplot_{score}", f"scatter_{target}_vs_{score}", f"density_{score}"):
                    report.skip(name, score_error)
            genes_error = result.scoring_errors.get("dotplot_genes")
            if genes_error:
                report.skip(f"dotplot_{target}_genes", genes_error)
            density_fields = [analysis.target_gene, *dataset.activity_fields]
            if analysis.module_score_name in dataset.score_fields:
                density_fields.append(analysis.module_score_name)
            report_result = report.generate(
                dataset,
                pseudobulk=result.pseudobulk,
                joins={n: j for n, j in result.joins.items() if n in result.correlations},
                correlations=result.correlations,
                join_errors=result.join_errors,
                density_fields=density_fields,
                gene_groups=gene_groups,
                tf=analysis.target_gene,
                basis=analysis.basis,
            )
            result.figures = report_result.figures
            result.skipped_figures = report_result.skipped
            result.tables = report_result.tables

        result.metrics = self._compute_metrics(result)
        return result

    def _compute_metrics(self, result: PipelineResult) -> dict[str, Any]:
        """Summary counts for logging."""
        metrics = {
            "n_cells": result.dataset.n_cells if result.dataset is not None else 0,
            "n_pseudobulk_tables": len(result.pseudobulk),
            "n_correlations": len(result.correlations),
            "n_failed_joins": len(result.join_errors),
            "n_scoring_errors": len(result.scoring_errors),
            "n_figures": len(result.figures),
            "n_skipped_figures": len(result.skipped_figures),
        }
        logger.info(f"Pipeline complete: {metrics}")
        return metrics


def create_pipeline(
    config_path: Optional[Path | str] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> Pipeline:
    """Build a Pipeline from a YAML configuration file.

    TONSILATLAS_ASSAY and TONSILATLAS_TARGET_GENE, when set, take
    precedence over the file and the overrides.

    Parameters
    ----------
    config_path : Path or str, optional
        YAML file; defaults to config/default.yaml under the project root
    overrides : dict, optional
        Values merged on top of the file
    """
    resolver = PathResolver(config_path, overrides=overrides)
    config = Config.from_env(Config.from_dict({
        key: resolver.config[key]
        for key in ("analysis", "plotting")
        if key in resolver.config
    }))
    return Pipeline(config=config, resolver=resolver)
