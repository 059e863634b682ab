"""
Naive and memory B-cell annotation palette.

The fifteen labels below are the only annotations the figures know how to
draw. Their order is the canonical display order.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd

from tonsilatlas_pipeline.core.exceptions import UnknownAnnotationLabel


BCELL_COLORS: dict[str, str] = {
    "NBC": "#dcf0f4",
    "NBC early activation": "#9ecae1",
    "NBC IFN-activated": "#6baed6",
    "NBC CD229+": "#4292c6",
    "Early GC-commited NBC": "#2171b5",
    "GC-commited NBC": "#08519c",
    "preGC": "#08306b",
    "Proliferative NBC": "#a1d99b",
    "Early MBC": "#fdd0a2",
    "ncsMBC": "#fdae6b",
    "ncsMBC FCRL4+/FCRL5+": "#fd8d3c",
    "csMBC": "#e6550d",
    "csMBC FCRL4+/FCRL5+": "#a63603",
    "MBC FCRL5+": "#756bb1",
    "MBC derived early PC precursor": "#54278f",
}


class AnnotationPalette:
    """
    Closed mapping from annotation label to display colour.

    Example:
        >>> palette = AnnotationPalette()
        >>> palette.color("csMBC")
        '#e6550d'
        >>> palette.unknown(["NBC", "GC B cell"])
        ['GC B cell']
    """

    def __init__(self, colors: Mapping[str, str] | None = None):
        self._colors = dict(colors if colors is not None else BCELL_COLORS)
        if not self._colors:
            raise ValueError("Palette must contain at least one label")

    @property
    def labels(self) -> list[str]:
        """Labels in canonical order."""
        return list(self._colors)

    def __contains__(self, label: object) -> bool:
        return label in self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def color(self, label: str) -> str:
        if label not in self._colors:
            raise UnknownAnnotationLabel([label])
        return self._colors[label]

    def unknown(self, labels: Iterable[str]) -> list[str]:
        """Labels not covered by the palette (sorted, unique)."""
        return sorted({str(label) for label in labels if label not in self._colors})

    def validate(self, labels: Iterable[str]) -> None:
        """Raise UnknownAnnotationLabel if any label is outside the palette."""
        unknown = self.unknown(labels)
        if unknown:
            raise UnknownAnnotationLabel(unknown)

    def order(self, labels: Iterable[str]) -> list[str]:
        """Canonical order restricted to the labels present."""
        labels = list(labels)
        self.validate(labels)
        present = set(labels)
        return [label for label in self._colors if label in present]

    def colors_for(self, labels: Iterable[str]) -> dict[str, str]:
        """Colour mapping for the given labels, for seaborn/scanpy palettes."""
        return {label: self.color(label) for label in labels}

    def as_categorical(self, values: pd.Series) -> pd.Series:
        """Validated categorical with categories in canonical order."""
        self.validate(values.dropna().unique())
        categories = self.order(values.dropna().unique())
        return pd.Series(
            pd.Categorical(values, categories=categories, ordered=True),
            index=values.index,
            name=values.name,
        )
