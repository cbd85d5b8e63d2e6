from datetime import timedelta
from statistics import fmean

from recurring_engine.core.configuration import DEFAULT_SETTINGS, DetectionSettings
from recurring_engine.detection.clustering import Cluster
from recurring_engine.detection.periodicity import PeriodicityReport
from recurring_engine.domain.amounts import round_half_up, to_cents
from recurring_engine.models import RecurringCandidate

# Spread of amounts, relative to their mean, still considered a steady charge.
NORMAL_VARIANCE_RATIO = 0.1


def pattern_score(interval_count: int, variance_normal: bool) -> int:
    interval_score = 90 if interval_count >= 3 else 70
    amount_score = 100 if variance_normal else 80
    return int(round_half_up((interval_score + amount_score) / 2))


def build_candidate(
    cluster: Cluster,
    periodicity: PeriodicityReport,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> RecurringCandidate:
    if not periodicity.is_stable or periodicity.mean_interval_days is None:
        raise ValueError(f"cluster '{cluster.key}' is not stable monthly ({periodicity.classification})")

    ordered = periodicity.ordered
    amounts = [t.magnitude for t in ordered]
    average = fmean(amounts)
    spread = max(amounts) - min(amounts)
    variance_normal = spread < average * NORMAL_VARIANCE_RATIO

    frequency_days = int(round_half_up(periodicity.mean_interval_days))
    last_date = ordered[-1].date
    next_date = last_date + timedelta(days=frequency_days)

    return RecurringCandidate(
        description=cluster.description,
        cluster_key=cluster.key,
        average_amount=to_cents(average),
        frequency_days=frequency_days,
        frequency=periodicity.frequency,
        transaction_count=len(ordered),
        amount_variance=to_cents(spread),
        variance_normal=variance_normal,
        pattern_score=pattern_score(len(periodicity.intervals), variance_normal),
        last_transaction_date=last_date,
        last_amount=to_cents(amounts[-1]),
        next_expected_date=next_date,
        due_day=next_date.day,
        sample_transactions=list(ordered[-settings.sample_size:]),
    )
