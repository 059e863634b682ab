"""
Error taxonomy for the tonsil atlas pipeline.

Load-stage errors abort a run. EmptyJoinResult only affects the figure or
correlation that needed the join.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence


def _preview(items: Sequence[str], limit: int = 5) -> str:
    shown = ", ".join(str(i) for i in items[:limit])
    if len(items) > limit:
        shown += f", ... ({len(items)} total)"
    return shown


class TonsilAtlasError(Exception):
    """Base class for pipeline errors."""


class LoadError(TonsilAtlasError):
    """A dataset loading stage could not produce a consistent dataset."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"[{stage}] {message}")


class MissingActivityScore(LoadError):
    """Retained cells (or a requested regulon) have no activity score.

    With no missing cells and a field, the regulon itself is absent from the
    activity table.
    """

    def __init__(self, missing: Iterable[str], field: str | None = None):
        self.missing = list(missing)
        self.field = field
        if not self.missing and field:
            message = f"regulon '{field}' not in activity table"
        else:
            target = f" for '{field}'" if field else ""
            message = (
                f"{len(self.missing)} cell(s) missing activity score{target}: "
                f"{_preview(self.missing)}"
            )
        super().__init__("attach_activity", message)


class MissingObsColumn(LoadError):
    """A required obs column is absent from the atlas."""

    def __init__(self, stage: str, column: str):
        self.column = column
        super().__init__(stage, f"column '{column}' not in obs")


class NoCellsRemaining(LoadError):
    """A filter step removed every cell."""

    def __init__(self, stage: str, detail: str = ""):
        message = "no cells remaining"
        if detail:
            message += f" ({detail})"
        super().__init__(stage, message)


class UnknownAnnotationLabel(TonsilAtlasError):
    """Annotation labels outside the fixed palette."""

    def __init__(self, labels: Iterable[str], counts: Mapping[str, int] | None = None):
        self.labels = sorted(set(str(label) for label in labels))
        self.counts = dict(counts or {})
        shown = [
            f"{label} ({self.counts[label]} cells)" if label in self.counts else label
            for label in self.labels
        ]
        super().__init__(
            f"{len(self.labels)} annotation label(s) not in palette: "
            f"{_preview(shown)}"
        )


class EmptyJoinResult(TonsilAtlasError):
    """An inner join of pseudobulk tables produced no rows."""

    def __init__(self, metrics: Iterable[str]):
        self.metrics = list(metrics)
        super().__init__(
            f"No shared (donor, annotation) keys across: {', '.join(self.metrics)}"
        )
