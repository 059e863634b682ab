"""
Data loading for the tonsil atlas.

Provides:
- LocalH5ADSource: backed access to the atlas H5AD
- Table readers for pySCENIC output, annotations and gene lists
- load_tonsil_dataset: the fail-fast dataset loader
"""

from tonsilatlas_pipeline.ingest.base import TonsilDataset
from tonsilatlas_pipeline.ingest.loader import (
    attach_activity,
    attach_annotation,
    load_tonsil_dataset,
    select_assay,
    validate_annotation,
)
from tonsilatlas_pipeline.ingest.local_h5ad import LocalH5ADSource
from tonsilatlas_pipeline.ingest.tables import (
    read_activity_table,
    read_annotation_table,
    read_gene_list,
    read_regulon_membership,
)

__all__ = [
    "TonsilDataset",
    "LocalH5ADSource",
    "attach_activity",
    "attach_annotation",
    "load_tonsil_dataset",
    "select_assay",
    "validate_annotation",
    "read_activity_table",
    "read_annotation_table",
    "read_gene_list",
    "read_regulon_membership",
]
