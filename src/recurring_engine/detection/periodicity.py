from dataclasses import dataclass, field
from statistics import fmean

from recurring_engine.core.configuration import DEFAULT_SETTINGS, DetectionSettings
from recurring_engine.detection.clustering import Cluster
from recurring_engine.domain.dates import days_between
from recurring_engine.models import FrequencyLabel, PeriodicityClass, Transaction

STABLE_MONTHLY: PeriodicityClass = "stable_monthly"
IRREGULAR: PeriodicityClass = "irregular"
INSUFFICIENT_DATA: PeriodicityClass = "insufficient_data"

# Upper bounds (inclusive) of the mean interval for each label.
FREQUENCY_BANDS: tuple[tuple[float, FrequencyLabel], ...] = (
    (10, "weekly"),
    (17, "biweekly"),
    (35, "monthly"),
    (100, "quarterly"),
)


@dataclass(frozen=True)
class PeriodicityReport:
    classification: PeriodicityClass
    mean_interval_days: float | None = None
    intervals: tuple[int, ...] = ()
    ordered: tuple[Transaction, ...] = field(default=(), repr=False)
    frequency: FrequencyLabel | None = None

    @property
    def is_stable(self) -> bool:
        return self.classification == STABLE_MONTHLY


def frequency_label(mean_interval_days: float) -> FrequencyLabel:
    for upper, label in FREQUENCY_BANDS:
        if mean_interval_days <= upper:
            return label
    return "annual"


def analyze(cluster: Cluster, settings: DetectionSettings = DEFAULT_SETTINGS) -> PeriodicityReport:
    if len(cluster) < settings.min_cluster_size:
        return PeriodicityReport(
            classification=INSUFFICIENT_DATA,
            ordered=tuple(cluster.transactions),
        )

    # Stable sort: same-day members keep their input order.
    ordered = tuple(sorted(cluster.transactions, key=lambda t: t.date))
    intervals = tuple(
        days_between(previous.date, current.date)
        for previous, current in zip(ordered, ordered[1:])
    )
    mean_interval = fmean(intervals)
    consistent = all(
        abs(interval - mean_interval) <= settings.interval_tolerance_days
        for interval in intervals
    )
    in_band = settings.monthly_min_days <= mean_interval <= settings.monthly_max_days

    return PeriodicityReport(
        classification=STABLE_MONTHLY if consistent and in_band else IRREGULAR,
        mean_interval_days=mean_interval,
        intervals=intervals,
        ordered=ordered,
        frequency=frequency_label(mean_interval),
    )
