import math

import pytest

from metricsreport.metrics.base import Snapshot


def test_snapshot_sorts_values() -> None:
    snapshot = Snapshot.of([5, 1, 3])
    assert snapshot.values == (1.0, 3.0, 5.0)
    assert len(snapshot) == 3


def test_quantiles_interpolate_between_neighbours() -> None:
    snapshot = Snapshot.of(range(1, 6))
    assert snapshot.value(0.0) == 1.0
    assert snapshot.median == 3.0
    assert snapshot.value(0.25) == pytest.approx(1.5)
    assert snapshot.p99 == 5.0
    assert snapshot.value(1.0) == 5.0


def test_empty_snapshot_answers_zero() -> None:
    snapshot = Snapshot.of([])
    assert snapshot.median == 0.0
    assert snapshot.p999 == 0.0


@pytest.mark.parametrize("quantile", [-0.1, 1.1, math.nan])
def test_invalid_quantiles_rejected(quantile) -> None:
    with pytest.raises(ValueError):
        Snapshot.of([1, 2, 3]).value(quantile)
