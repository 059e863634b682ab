"""Tests for Pearson correlation of joined pseudobulk metrics."""

import pytest
import numpy as np
import pandas as pd
from scipy import stats


@pytest.fixture
def joined_frame():
    rng = np.random.RandomState(42)
    x = rng.uniform(0, 5, 30)
    return pd.DataFrame({
        "donor_id": [f"D{i}" for i in range(30)],
        "annotation": ["NBC"] * 30,
        "TBX21": x,
        "TBX21(+)": 0.1 * x + rng.normal(0, 0.05, 30),
    })


class TestPearsonCorrelator:
    """Test Pearson correlation and linear fit."""

    def test_matches_scipy(self, joined_frame):
        from tonsilatlas_pipeline.correlation import PearsonCorrelator

        result = PearsonCorrelator().correlate(joined_frame, "TBX21", "TBX21(+)")
        r, p = stats.pearsonr(joined_frame["TBX21"], joined_frame["TBX21(+)"])
        assert result.r == pytest.approx(r)
        assert result.pvalue == pytest.approx(p)
        assert result.n == 30
        assert result.r > 0.8

    def test_linear_fit(self, joined_frame):
        from tonsilatlas_pipeline.correlation import pearson_correlation

        result = pearson_correlation(joined_frame, "TBX21", "TBX21(+)")
        assert result.slope == pytest.approx(0.1, abs=0.02)

    def test_perfect_correlation(self):
        from tonsilatlas_pipeline.correlation import PearsonCorrelator

        x = np.arange(10, dtype=float)
        result = PearsonCorrelator().correlate_arrays(x, 2 * x + 1)
        assert result.r == pytest.approx(1.0)
        assert result.slope == pytest.approx(2.0)
        assert result.intercept == pytest.approx(1.0)

    def test_joined_table_input(self):
        from tonsilatlas_pipeline.aggregation.joining import JoinedTable
        from tonsilatlas_pipeline.correlation import pearson_correlation

        data = pd.DataFrame({
            "donor_id": ["D1", "D2", "D3", "D4"],
            "annotation": ["NBC"] * 4,
            "a": [1.0, 2.0, 3.0, 4.0],
            "b": [4.0, 3.0, 2.0, 1.0],
        })
        joined = JoinedTable(metrics=("a", "b"), data=data)
        result = pearson_correlation(joined, "a", "b")
        assert result.r == pytest.approx(-1.0)

    def test_too_few_pairs(self):
        from tonsilatlas_pipeline.correlation import PearsonCorrelator

        with pytest.raises(ValueError, match="at least 3"):
            PearsonCorrelator().correlate_arrays(np.array([1.0, 2.0]), np.array([1.0, 3.0]))

    def test_constant_input(self):
        from tonsilatlas_pipeline.correlation import PearsonCorrelator

        with pytest.raises(ValueError, match="constant"):
            PearsonCorrelator().correlate_arrays(np.ones(5), np.arange(5, dtype=float))

    def test_missing_metric(self, joined_frame):
        from tonsilatlas_pipeline.correlation import PearsonCorrelator

        with pytest.raises(KeyError):
            PearsonCorrelator().correlate(joined_frame, "TBX21", "PAX5(+)")

    def test_label(self):
        from tonsilatlas_pipeline.correlation import CorrelationResult

        result = CorrelationResult(
            x="TBX21", y="TBX21(+)", r=0.6543, pvalue=0.00012, n=12, slope=1.0, intercept=0.0
        )
        assert result.label() == "R = 0.65, p = 0.00012"
        assert result.to_dict()["n"] == 12
