"""
Local H5AD file data source.

Opens the atlas in AnnData's backed mode so only the selected cells are
read into memory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import anndata as ad
import numpy as np
import pandas as pd


class LocalH5ADSource:
    """
    Data source for local H5AD files.

    Example:
        >>> with LocalH5ADSource("/path/to/tonsil.h5ad") as source:
        ...     mask = source.obs["assay"] == "3P"
        ...     adata = source.to_memory(mask.to_numpy())
    """

    def __init__(
        self,
        path: Union[str, Path],
        backed: bool = True,
    ):
        """
        Initialize H5AD data source.

        Args:
            path: Path to H5AD file.
            backed: Read lazily from disk.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"H5AD file not found: {self.path}")

        self.backed = backed
        if backed:
            self._adata = ad.read_h5ad(self.path, backed="r")
        else:
            self._adata = ad.read_h5ad(self.path)

    @property
    def n_cells(self) -> int:
        """Total number of cells."""
        return self._adata.n_obs

    @property
    def n_genes(self) -> int:
        """Total number of genes."""
        return self._adata.n_vars

    @property
    def obs(self) -> pd.DataFrame:
        """Cell metadata (read-only view)."""
        return self._adata.obs

    @property
    def obs_columns(self) -> list[str]:
        """Available cell metadata columns."""
        return list(self._adata.obs.columns)

    def to_memory(self, cell_mask: Optional[np.ndarray] = None) -> ad.AnnData:
        """
        Materialise selected cells as an in-memory AnnData.

        Args:
            cell_mask: Boolean mask over cells (None for all).

        Returns:
            AnnData detached from the file.
        """
        view = self._adata if cell_mask is None else self._adata[np.asarray(cell_mask, dtype=bool)]
        if self.backed:
            return view.to_memory()
        return view.copy()

    def close(self) -> None:
        """Close the H5AD file (for backed mode)."""
        if getattr(self._adata, "isbacked", False) and self._adata.file is not None:
            self._adata.file.close()

    def __enter__(self) -> "LocalH5ADSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_cells={self.n_cells}, n_genes={self.n_genes})"
