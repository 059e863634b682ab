"""
Dataset loading.

Builds a TonsilDataset from the atlas H5AD, the pySCENIC activity matrix and
the updated annotation table:

1. keep one assay modality
2. attach regulon activity scores (every retained cell must have one)
3. restrict to annotated cells and attach the updated labels
4. check labels against the annotation palette
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import anndata as ad
import pandas as pd

from tonsilatlas_pipeline.core.config import AnalysisConfig
from tonsilatlas_pipeline.core.exceptions import (
    MissingActivityScore,
    MissingObsColumn,
    NoCellsRemaining,
    UnknownAnnotationLabel,
)
from tonsilatlas_pipeline.core.palette import AnnotationPalette
from tonsilatlas_pipeline.ingest.base import TonsilDataset
from tonsilatlas_pipeline.ingest.local_h5ad import LocalH5ADSource
from tonsilatlas_pipeline.ingest.tables import (
    read_activity_table,
    read_annotation_table,
)

logger = logging.getLogger(__name__)


def select_assay(
    source: LocalH5ADSource,
    assay: str,
    assay_col: str = "assay",
) -> ad.AnnData:
    """
    Materialise the cells profiled with one assay.

    Cells with a missing assay tag never match.
    """
    if assay_col not in source.obs_columns:
        raise MissingObsColumn("assay_filter", assay_col)

    mask = (source.obs[assay_col].astype(object) == assay).to_numpy(dtype=bool)
    n_kept = int(mask.sum())
    if n_kept == 0:
        raise NoCellsRemaining("assay_filter", f"{assay_col} == {assay!r}")

    logger.info(f"Assay filter {assay_col} == {assay!r}: kept {n_kept}/{source.n_cells} cells")
    return source.to_memory(mask)


def attach_activity(
    adata: ad.AnnData,
    activity: pd.DataFrame,
    regulons: Sequence[str],
) -> ad.AnnData:
    """
    Attach regulon activity scores to every cell.

    Args:
        adata: Cells to annotate.
        activity: Activity matrix indexed by cell id.
        regulons: Regulon columns to attach.

    Returns:
        Copy of adata with one obs column per regulon.

    Raises:
        MissingActivityScore: A cell has no row, or a missing value, for a
            requested regulon; or the regulon is not in the table.
    """
    cell_ids = adata.obs_names

    for regulon in regulons:
        if regulon not in activity.columns:
            raise MissingActivityScore([], field=regulon)

    absent = ~cell_ids.isin(activity.index)
    if absent.any():
        raise MissingActivityScore(list(cell_ids[absent]))

    scores = activity.reindex(cell_ids)[list(regulons)]
    for regulon in regulons:
        nan_mask = scores[regulon].isna().to_numpy()
        if nan_mask.any():
            raise MissingActivityScore(list(cell_ids[nan_mask]), field=regulon)

    out = adata.copy()
    for regulon in regulons:
        out.obs[regulon] = scores[regulon].to_numpy(dtype=float)

    logger.info(f"Attached activity for {len(regulons)} regulon(s) to {out.n_obs} cells")
    return out


def attach_annotation(
    adata: ad.AnnData,
    labels: pd.Series,
    annotation_col: str = "annotation",
) -> ad.AnnData:
    """
    Keep annotated cells and attach their updated label.

    Cells absent from the table, or with a missing label, are dropped.
    Retained cells follow the annotation table's order.
    """
    labels = labels.dropna()
    labels.index = labels.index.astype(str)

    present = set(adata.obs_names)
    order = [cell_id for cell_id in labels.index if cell_id in present]
    if not order:
        raise NoCellsRemaining(
            "attach_annotation", "no cell ids shared with the annotation table"
        )

    n_dropped = adata.n_obs - len(order)
    if n_dropped:
        logger.warning(f"Dropped {n_dropped} cells without an updated annotation")

    out = adata[order].copy()
    out.obs[annotation_col] = labels.loc[order].astype(str).to_numpy()
    return out


def validate_annotation(
    adata: ad.AnnData,
    palette: AnnotationPalette,
    annotation_col: str = "annotation",
    drop_unknown: bool = False,
) -> ad.AnnData:
    """
    Check labels against the palette and make the column categorical.

    With drop_unknown the offending cells are dropped with a warning,
    otherwise UnknownAnnotationLabel is raised.
    """
    labels = adata.obs[annotation_col]
    unknown = palette.unknown(labels.unique())

    out = adata
    if unknown:
        mask = ~labels.isin(unknown).to_numpy()
        counts = labels[~mask].astype(str).value_counts()
        if not drop_unknown:
            raise UnknownAnnotationLabel(unknown, counts=counts.to_dict())

        logger.warning(
            "Dropping cells with labels outside the palette: "
            + ", ".join(f"{label} ({n})" for label, n in counts.items())
        )
        if not mask.any():
            raise NoCellsRemaining("validate_annotation", "every label is outside the palette")
        out = adata[mask]

    out = out.copy()
    out.obs[annotation_col] = palette.as_categorical(out.obs[annotation_col])
    return out


def load_tonsil_dataset(
    h5ad_path: Union[str, Path],
    activity: Union[str, Path, pd.DataFrame],
    annotation: Union[str, Path, pd.Series],
    config: Optional[AnalysisConfig] = None,
    palette: Optional[AnnotationPalette] = None,
) -> TonsilDataset:
    """
    Load a consistent TonsilDataset.

    Args:
        h5ad_path: Atlas H5AD file.
        activity: Activity matrix, or a path to it.
        annotation: Updated labels indexed by cell id, or a path to them.
        config: Analysis configuration.
        palette: Annotation palette used to validate labels.

    Returns:
        Dataset in which every cell has expression, assay tag, activity
        scores and an annotation label.

    Example:
        >>> dataset = load_tonsil_dataset(
        ...     "tonsil.h5ad", "auc_mtx.csv", "annotation.csv"
        ... )
        >>> dataset.summary()["n_cells"]
    """
    config = config or AnalysisConfig()
    palette = palette or AnnotationPalette()

    if not isinstance(activity, pd.DataFrame):
        activity = read_activity_table(activity)
    if not isinstance(annotation, pd.Series):
        annotation = read_annotation_table(annotation)

    with LocalH5ADSource(h5ad_path) as source:
        if config.donor_col not in source.obs_columns:
            raise MissingObsColumn("donor_filter", config.donor_col)
        adata = select_assay(source, config.assay, config.assay_col)

    adata = attach_activity(adata, activity, config.regulons)
    adata = attach_annotation(adata, annotation, config.annotation_col)
    adata = validate_annotation(
        adata, palette, config.annotation_col, drop_unknown=config.drop_unknown_labels
    )

    missing_donor = adata.obs[config.donor_col].isna().to_numpy()
    if missing_donor.any():
        logger.warning(f"Dropped {int(missing_donor.sum())} cells without a donor id")
        if missing_donor.all():
            raise NoCellsRemaining("donor_filter", f"{config.donor_col} is missing for every cell")
        adata = adata[~missing_donor].copy()

    dataset = TonsilDataset(
        adata=adata,
        donor_col=config.donor_col,
        annotation_col=config.annotation_col,
        assay_col=config.assay_col,
        activity_fields=tuple(config.regulons),
        layer=config.layer,
    )
    logger.info(f"Loaded {dataset}: {dataset.summary()}")
    return dataset
