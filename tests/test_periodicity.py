from datetime import date, timedelta

import pytest

from recurring_engine.core.configuration import DetectionSettings
from recurring_engine.detection.clustering import Cluster
from recurring_engine.detection.periodicity import analyze, frequency_label
from recurring_engine.models import Transaction

DAY0 = date(2024, 1, 5)


def _cluster_from_intervals(intervals: list[int]) -> Cluster:
    offsets = [0]
    for interval in intervals:
        offsets.append(offsets[-1] + interval)
    return Cluster(
        key="rent",
        transactions=[
            Transaction(description="Rent", amount=1200.0, date=DAY0 + timedelta(days=offset))
            for offset in offsets
        ],
    )

def test_monthly_drift_is_stable() -> None:
    report = analyze(_cluster_from_intervals([28, 31, 29]))
    assert report.classification == "stable_monthly"
    assert report.intervals == (28, 31, 29)
    assert report.mean_interval_days == pytest.approx(29.333, abs=1e-3)
    assert report.frequency == "monthly"
    assert report.is_stable

def test_weekly_cadence_is_irregular_for_monthly_detection() -> None:
    report = analyze(_cluster_from_intervals([7, 7, 7]))
    assert report.classification == "irregular"
    assert report.mean_interval_days == 7
    assert report.frequency == "weekly"

def test_single_transaction_is_insufficient() -> None:
    report = analyze(_cluster_from_intervals([]))
    assert report.classification == "insufficient_data"
    assert report.intervals == ()
    assert report.mean_interval_days is None
    assert report.frequency is None

def test_interval_outside_tolerance_is_irregular() -> None:
    # Mean is 30 but 20 and 40 are each 10 days away from it.
    report = analyze(_cluster_from_intervals([20, 40]))
    assert report.classification == "irregular"

@pytest.mark.parametrize(
    ("intervals", "expected"),
    [
        ([20, 20], "stable_monthly"),
        ([40, 40], "stable_monthly"),
        ([19, 19], "irregular"),
        ([41, 41], "irregular"),
        ([25, 35], "stable_monthly"),
        ([24, 36], "irregular"),
    ],
)
def test_band_and_tolerance_boundaries(intervals: list[int], expected: str) -> None:
    assert analyze(_cluster_from_intervals(intervals)).classification == expected

def test_members_are_sorted_by_date_before_measuring() -> None:
    cluster = _cluster_from_intervals([30, 30, 30])
    cluster.transactions.reverse()
    report = analyze(cluster)
    assert report.intervals == (30, 30, 30)
    assert [t.date for t in report.ordered] == sorted(t.date for t in cluster.transactions)
    # The cluster itself is left as built.
    assert cluster.transactions[0].date > cluster.transactions[-1].date

def test_same_day_charges_are_irregular() -> None:
    report = analyze(_cluster_from_intervals([0, 0]))
    assert report.classification == "irregular"
    assert report.mean_interval_days == 0

def test_custom_band_and_tolerance() -> None:
    settings = DetectionSettings(interval_tolerance_days=1, monthly_min_days=5, monthly_max_days=10)
    assert analyze(_cluster_from_intervals([7, 7, 7]), settings).classification == "stable_monthly"
    assert analyze(_cluster_from_intervals([6, 9]), settings).classification == "irregular"

@pytest.mark.parametrize(
    ("mean", "label"),
    [(7, "weekly"), (10, "weekly"), (14, "biweekly"), (30.5, "monthly"), (35, "monthly"), (91, "quarterly"), (365, "annual")],
)
def test_frequency_labels(mean: float, label: str) -> None:
    assert frequency_label(mean) == label
