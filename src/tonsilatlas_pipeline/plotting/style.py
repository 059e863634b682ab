"""
Shared figure style and file naming.
"""

from __future__ import annotations

import re
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

RC_PARAMS = {
    "font.family": "sans-serif",
    "font.sans-serif": ["DejaVu Sans", "Arial", "Helvetica"],
    "font.size": 10,
    "axes.titlesize": 12,
    "axes.labelsize": 11,
    "xtick.labelsize": 8,
    "ytick.labelsize": 8,
    "legend.fontsize": 8,
    "figure.dpi": 150,
    "savefig.dpi": 300,
    "savefig.bbox": "tight",
    "savefig.facecolor": "white",
    "axes.spines.top": False,
    "axes.spines.right": False,
}


def apply_style() -> None:
    plt.rcParams.update(RC_PARAMS)


def safe_name(name: str) -> str:
    """File-name friendly version of a metric name ("TBX21(+)" -> "TBX21_plus")."""
    name = name.replace("+", "_plus").replace("(-)", "_minus")
    return re.sub(r"[^A-Za-z0-9.-]+", "_", name).strip("_")


def save_figure(fig: plt.Figure, path: Path, dpi: int = 300) -> Path:
    """Save and close a figure, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    return path
