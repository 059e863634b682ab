"""Tests for pseudobulk aggregation."""

import pytest
import numpy as np
import pandas as pd


SCENARIO = [
    ("D1", "NBC", 2.0),
    ("D1", "NBC", 4.0),
    ("D2", "MBC", 1.0),
]


class TestPseudobulkAggregator:
    """Test donor x annotation means."""

    def test_scenario_means(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        table = aggregate_metric(make_dataset(SCENARIO), "TBX21")
        means = table.to_series().to_dict()
        assert means == {("D1", "NBC"): 3.0, ("D2", "MBC"): 1.0}

    def test_no_phantom_rows(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        table = aggregate_metric(make_dataset(SCENARIO), "TBX21")
        assert ("D1", "MBC") not in table.keys
        assert ("D2", "NBC") not in table.keys
        assert (table.data["n_cells"] >= 1).all()

    def test_cell_counts(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        table = aggregate_metric(make_dataset(SCENARIO), "TBX21")
        counts = table.data.set_index(["donor_id", "annotation"])["n_cells"].to_dict()
        assert counts == {("D1", "NBC"): 2, ("D2", "MBC"): 1}

    def test_order_independence(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        rng = np.random.RandomState(7)
        records = [
            (f"D{rng.randint(3)}", ["NBC", "csMBC"][rng.randint(2)], float(v))
            for v in rng.uniform(0, 1e6, 200)
        ]
        expected = aggregate_metric(make_dataset(records), "TBX21").data

        for seed in range(3):
            order = np.random.RandomState(seed).permutation(len(records))
            shuffled = [records[i] for i in order]
            result = aggregate_metric(make_dataset(shuffled), "TBX21").data
            pd.testing.assert_frame_equal(result, expected, check_exact=True)

    def test_mean_within_range(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        records = [("D1", "NBC", 0.1)] * 3 + [("D1", "NBC", 0.7)] + [("D2", "NBC", 1e-300)]
        table = aggregate_metric(make_dataset(records), "TBX21")
        for (donor, label), mean in table.to_series().items():
            values = [r[2] for r in records if r[0] == donor and r[1] == label]
            assert min(values) <= mean <= max(values)

    def test_identical_values_exact(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        records = [("D1", "NBC", 0.1)] * 10
        table = aggregate_metric(make_dataset(records), "TBX21")
        assert table.to_series()[("D1", "NBC")] == 0.1

    def test_singleton_exact(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        table = aggregate_metric(make_dataset([("D1", "NBC", 0.123456789)]), "TBX21")
        assert table.to_series()[("D1", "NBC")] == 0.123456789

    def test_idempotent(self, loaded_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        first = aggregate_metric(loaded_dataset, "TBX21")
        second = aggregate_metric(loaded_dataset, "TBX21")
        pd.testing.assert_frame_equal(first.data, second.data, check_exact=True)

    def test_activity_field(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        dataset = make_dataset(SCENARIO, activity=[0.2, 0.4, 0.9])
        table = aggregate_metric(dataset, "TBX21(+)")
        assert table.metric == "TBX21(+)"
        assert table.to_series()[("D1", "NBC")] == pytest.approx(0.3)

    def test_min_cells(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        table = aggregate_metric(make_dataset(SCENARIO), "TBX21", min_cells=2)
        assert table.keys == {("D1", "NBC")}
        assert table.stats["n_groups_dropped"] == 1

    def test_invalid_min_cells(self):
        from tonsilatlas_pipeline.aggregation import AggregationConfig, PseudobulkAggregator

        with pytest.raises(ValueError):
            PseudobulkAggregator(AggregationConfig(min_cells=0))

    def test_missing_values_ignored(self):
        from tonsilatlas_pipeline.aggregation import PseudobulkAggregator

        frame = pd.DataFrame({
            "donor_id": ["D1", "D1", "D2"],
            "annotation": ["NBC", "NBC", "NBC"],
            "score": [1.0, np.nan, np.nan],
        })
        table = PseudobulkAggregator().aggregate_frame(frame, "score")
        assert table.keys == {("D1", "NBC")}
        assert table.to_series()[("D1", "NBC")] == 1.0

    def test_missing_column(self):
        from tonsilatlas_pipeline.aggregation import PseudobulkAggregator

        frame = pd.DataFrame({"donor_id": ["D1"], "score": [1.0]})
        with pytest.raises(ValueError, match="annotation"):
            PseudobulkAggregator().aggregate_frame(frame, "score")

    def test_group_means_ascending(self, make_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        records = [("D1", "NBC", 5.0), ("D2", "NBC", 3.0), ("D1", "csMBC", 1.0)]
        means = aggregate_metric(make_dataset(records), "TBX21").group_means()
        assert list(means.index) == ["csMBC", "NBC"]
        assert means["NBC"] == 4.0

    def test_loaded_dataset_groups(self, loaded_dataset):
        from tonsilatlas_pipeline.aggregation import aggregate_metric

        table = aggregate_metric(loaded_dataset, "TBX21")
        # 3 donors x 4 labels, all observed
        assert len(table) == 12
        assert table.data["n_cells"].sum() == loaded_dataset.n_cells
