"""Tests for cross-metric joins."""

import pytest
import pandas as pd

from tonsilatlas_pipeline.aggregation.base import PseudobulkTable
from tonsilatlas_pipeline.core.exceptions import EmptyJoinResult


def _table(metric, rows):
    data = pd.DataFrame(
        [(donor, label, value, 1) for donor, label, value in rows],
        columns=["donor_id", "annotation", metric, "n_cells"],
    )
    return PseudobulkTable(metric=metric, data=data)


class TestJoinPseudobulk:
    """Test inner joins on (donor, annotation)."""

    def test_single_shared_key(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        expression = _table("TBX21", [("D1", "NBC", 3.0), ("D2", "MBC", 1.0)])
        activity = _table("TBX21(+)", [("D1", "NBC", 0.4)])

        joined = join_pseudobulk(expression, activity)
        assert len(joined) == 1
        assert joined.keys == {("D1", "NBC")}
        row = joined.data.iloc[0]
        assert row["TBX21"] == 3.0
        assert row["TBX21(+)"] == 0.4

    def test_rows_bounded_by_smallest_input(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        a = _table("a", [("D1", "NBC", 1.0), ("D2", "NBC", 2.0), ("D3", "NBC", 3.0)])
        b = _table("b", [("D2", "NBC", 1.0), ("D3", "NBC", 2.0), ("D4", "NBC", 3.0)])

        joined = join_pseudobulk(a, b)
        assert len(joined) <= min(len(a), len(b))
        assert joined.keys <= a.keys & b.keys
        assert joined.keys == {("D2", "NBC"), ("D3", "NBC")}

    def test_no_missing_values(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        a = _table("a", [("D1", "NBC", 1.0), ("D2", "NBC", 2.0)])
        b = _table("b", [("D2", "NBC", 1.0)])

        joined = join_pseudobulk(a, b)
        assert not joined.data.isna().any().any()

    def test_three_way(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        a = _table("a", [("D1", "NBC", 1.0), ("D2", "NBC", 2.0)])
        b = _table("b", [("D1", "NBC", 1.0), ("D2", "NBC", 2.0)])
        c = _table("c", [("D2", "NBC", 5.0)])

        joined = join_pseudobulk(a, b, c)
        assert joined.metrics == ("a", "b", "c")
        assert joined.name == "a_vs_b_vs_c"
        assert joined.keys == {("D2", "NBC")}

    def test_empty_join_raises(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        a = _table("a", [("D1", "NBC", 1.0)])
        b = _table("b", [("D2", "NBC", 1.0)])

        with pytest.raises(EmptyJoinResult) as excinfo:
            join_pseudobulk(a, b)
        assert excinfo.value.metrics == ["a", "b"]

    def test_requires_two_tables(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        with pytest.raises(ValueError):
            join_pseudobulk(_table("a", [("D1", "NBC", 1.0)]))

    def test_duplicate_metric(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        a = _table("a", [("D1", "NBC", 1.0)])
        with pytest.raises(ValueError, match="Duplicate"):
            join_pseudobulk(a, a)

    def test_sorted_by_key(self):
        from tonsilatlas_pipeline.aggregation import join_pseudobulk

        a = _table("a", [("D2", "NBC", 1.0), ("D1", "csMBC", 2.0), ("D1", "NBC", 3.0)])
        b = _table("b", [("D1", "NBC", 1.0), ("D2", "NBC", 2.0), ("D1", "csMBC", 3.0)])

        joined = join_pseudobulk(a, b)
        keys = list(joined.data[["donor_id", "annotation"]].itertuples(index=False, name=None))
        assert keys == sorted(keys)

    def test_joins_are_independent(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric, join_pseudobulk

        dataset = make_dataset(
            [("D1", "NBC", 2.0), ("D2", "csMBC", 1.0)], activity=[0.1, 0.2]
        )
        expression = aggregate_metric(dataset, "TBX21")
        activity = aggregate_metric(dataset, "TBX21(+)")
        score = _table("score", [("D2", "csMBC", 0.5)])

        assert len(join_pseudobulk(expression, activity)) == 2
        assert len(join_pseudobulk(expression, score)) == 1
