"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import pandas as pd
from pathlib import Path
import tempfile

import anndata as ad
import yaml

from tonsilatlas_pipeline.ingest.base import TonsilDataset


DONORS = ["D1", "D2", "D3"]
LABELS = ["NBC", "ncsMBC", "csMBC", "MBC FCRL5+"]
NAMED_GENES = ["TBX21", "FCRL5", "ITGAX", "ZEB2", "CXCR3", "TCF7", "CR2", "SELL"]
N_CELLS = 120
N_3P = 100


def _barcodes(n):
    return [f"cell_{i:03d}" for i in range(n)]


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_adata():
    """Small atlas: 100 3P cells and 20 5P cells, 60 genes, a 2-D UMAP."""
    rng = np.random.RandomState(42)
    genes = NAMED_GENES + [f"gene_{i}" for i in range(len(NAMED_GENES), 60)]

    donors = [DONORS[i % 3] for i in range(N_CELLS)]
    labels = [LABELS[(i // 3) % 4] for i in range(N_CELLS)]

    X = rng.poisson(1.0, (N_CELLS, len(genes))).astype(np.float32)
    # TBX21 up in FCRL5+ memory cells
    X[:, 0] += np.array([3.0 if label == "MBC FCRL5+" else 0.0 for label in labels], dtype=np.float32)

    obs = pd.DataFrame({
        "donor_id": donors,
        "assay": ["3P"] * N_3P + ["5P"] * (N_CELLS - N_3P),
        "annotation_level_1": labels,
    }, index=_barcodes(N_CELLS))
    var = pd.DataFrame(index=genes)

    adata = ad.AnnData(X=X, obs=obs, var=var)
    adata.obsm["X_umap"] = rng.randn(N_CELLS, 2)
    return adata


@pytest.fixture
def sample_activity(sample_adata):
    """AUCell matrix covering every cell."""
    rng = np.random.RandomState(0)
    tbx21 = sample_adata[:, "TBX21"].X.ravel()
    return pd.DataFrame({
        "TBX21(+)": 0.05 * tbx21 + rng.uniform(0, 0.05, N_CELLS),
        "PAX5(+)": rng.uniform(0, 1, N_CELLS),
    }, index=sample_adata.obs_names.copy())


@pytest.fixture
def sample_annotation(sample_adata):
    """Updated labels for cells 5..119, listed in reverse order."""
    labels = sample_adata.obs["annotation_level_1"].iloc[5:].astype(str)
    return labels.iloc[::-1].rename("annotation")


@pytest.fixture
def sample_membership():
    """Regulon membership (genes x regulons)."""
    genes = ["FCRL5", "ITGAX", "ZEB2", "CXCR3", "gene_10", "gene_11", "CR2", "SELL", "TCF7"]
    return pd.DataFrame({
        "TBX21(+)": [1, 1, 1, 1, 1, 1, 0, 0, 0],
        "PAX5(+)": [0, 0, 0, 0, 0, 0, 1, 1, 1],
    }, index=genes).astype(bool)


@pytest.fixture
def sample_gene_list():
    """TBX21-correlated genes."""
    return pd.DataFrame({
        "gene": ["FCRL5", "ITGAX", "ZEB2", "TCF7", "CR2", "SELL"],
        "correlation": ["positive"] * 3 + ["negative"] * 3,
        "tf": ["TBX21"] * 6,
    })


@pytest.fixture
def mock_h5ad(temp_dir, sample_adata):
    """Create mock H5AD file."""
    path = temp_dir / "tonsil.h5ad"
    sample_adata.write_h5ad(path)
    return path


@pytest.fixture
def input_files(temp_dir, mock_h5ad, sample_activity, sample_annotation,
                sample_membership, sample_gene_list):
    """Every pipeline input written to disk."""
    paths = {
        "tonsil_h5ad": mock_h5ad,
        "scenic_auc": temp_dir / "auc_mtx.csv",
        "regulons": temp_dir / "regulons.csv",
        "annotation": temp_dir / "annotation.csv",
        "gene_list": temp_dir / "gene_list.csv",
    }
    sample_activity.to_csv(paths["scenic_auc"])
    sample_membership.astype(int).to_csv(paths["regulons"])
    sample_annotation.rename_axis("barcode").reset_index().to_csv(paths["annotation"], index=False)
    sample_gene_list.to_csv(paths["gene_list"], index=False)
    return paths


@pytest.fixture
def config_yaml(temp_dir, input_files):
    """Full configuration file with absolute paths into temp_dir."""
    config = {
        "data_paths": {key: str(path) for key, path in input_files.items()},
        "output_paths": {
            "results": str(temp_dir / "results"),
            "figures": str(temp_dir / "results" / "figures"),
        },
        "analysis": {
            "assay": "3P",
            "target_gene": "TBX21",
            "regulons": ["TBX21(+)"],
            "module_score_name": "TBX21_targets_score",
        },
        "plotting": {
            "dpi": 40,
            "density_grid_size": 30,
            "density_bandwidth": 1.5,
        },
    }
    path = temp_dir / "config.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(config, f)
    return path


@pytest.fixture
def loaded_dataset(mock_h5ad, sample_activity, sample_annotation):
    """Dataset after the full load stage."""
    from tonsilatlas_pipeline.ingest.loader import load_tonsil_dataset
    return load_tonsil_dataset(mock_h5ad, sample_activity, sample_annotation)


@pytest.fixture
def make_dataset():
    """Build a TonsilDataset from (donor, annotation, TBX21 value) records."""

    def _make(records, activity=None):
        n = len(records)
        obs = pd.DataFrame({
            "donor_id": [r[0] for r in records],
            "annotation": [r[1] for r in records],
            "assay": ["3P"] * n,
        }, index=[f"c{i}" for i in range(n)])
        if activity is not None:
            obs["TBX21(+)"] = np.asarray(activity, dtype=float)
        X = np.array([[r[2]] for r in records], dtype=np.float64)
        adata = ad.AnnData(X=X, obs=obs, var=pd.DataFrame(index=["TBX21"]))
        adata.obsm["X_umap"] = np.column_stack([np.arange(n, dtype=float), np.zeros(n)])
        return TonsilDataset(
            adata=adata,
            activity_fields=("TBX21(+)",) if activity is not None else (),
        )

    return _make
