"""
Readers for the externally computed per-cell and per-gene tables.

- AUCell activity matrix from pySCENIC (cells x regulons)
- Updated annotation labels (cell id -> label)
- Regulon membership (genes x regulons, 0/1)
- TF-correlated gene list (gene, correlation sign, driving TF)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import pandas as pd

logger = logging.getLogger(__name__)

CORRELATION_SIGNS = ("positive", "negative")


def _require_columns(df: pd.DataFrame, columns: list[str], path: Path) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing required column(s) {missing}")


def _require_unique_index(index: pd.Index, path: Path) -> None:
    if index.has_duplicates:
        dupes = index[index.duplicated()].unique()[:5].tolist()
        raise ValueError(f"{path}: duplicated identifiers {dupes}")


def read_activity_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a pySCENIC AUCell matrix.

    Args:
        path: CSV with cell ids in the first column and one column per regulon.

    Returns:
        Float DataFrame indexed by cell id (as str).
    """
    path = Path(path)
    activity = pd.read_csv(path, index_col=0)
    activity.index = activity.index.astype(str)
    _require_unique_index(activity.index, path)
    logger.info(f"Read activity table {path.name}: {activity.shape[0]} cells x {activity.shape[1]} regulons")
    return activity.astype(float)


def read_annotation_table(
    path: Union[str, Path],
    id_col: str = "barcode",
    label_col: str = "annotation",
) -> pd.Series:
    """
    Read the updated annotation table.

    Returns:
        Series of labels indexed by cell id, in file order.
    """
    path = Path(path)
    table = pd.read_csv(path, dtype={id_col: str})
    _require_columns(table, [id_col, label_col], path)
    labels = table.set_index(id_col)[label_col]
    _require_unique_index(labels.index, path)
    logger.info(f"Read annotation table {path.name}: {len(labels)} cells")
    return labels.rename(label_col)


def read_regulon_membership(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read the regulon membership table.

    Returns:
        Boolean DataFrame (genes x regulons).
    """
    path = Path(path)
    membership = pd.read_csv(path, index_col=0)
    membership.index = membership.index.astype(str)
    _require_unique_index(membership.index, path)
    return membership.fillna(0).astype(bool)


def read_gene_list(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read the TF-correlated gene list.

    Returns:
        DataFrame with columns gene, correlation, tf.
    """
    path = Path(path)
    genes = pd.read_csv(path)
    _require_columns(genes, ["gene", "correlation", "tf"], path)

    genes = genes[["gene", "correlation", "tf"]].copy()
    genes["correlation"] = genes["correlation"].astype(str).str.strip().str.lower()
    invalid = sorted(set(genes["correlation"]) - set(CORRELATION_SIGNS))
    if invalid:
        raise ValueError(
            f"{path}: correlation must be one of {CORRELATION_SIGNS}, got {invalid}"
        )
    return genes.drop_duplicates().reset_index(drop=True)
