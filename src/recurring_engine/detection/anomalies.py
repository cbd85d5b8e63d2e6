from collections.abc import Iterable, Sequence
from statistics import fmean

from recurring_engine.core.configuration import DEFAULT_SETTINGS, DetectionSettings
from recurring_engine.detection.matching import contains_name
from recurring_engine.detection.text import normalize
from recurring_engine.domain.amounts import round_half_up, to_cents
from recurring_engine.logger import get_logger
from recurring_engine.models import Anomaly, KnownObligation, Transaction

logger = get_logger(__name__)


def matching_transactions(
    obligation: KnownObligation,
    transactions: Sequence[Transaction],
) -> list[Transaction]:
    name_key = normalize(obligation.name)
    if not name_key:
        return []
    return [t for t in transactions if contains_name(normalize(t.description), name_key)]


def recent_window(matches: Sequence[Transaction], size: int) -> list[Transaction]:
    """The ``size`` most recent matches, oldest first.

    Matches on the same date keep their input order, so among same-day
    charges the last one supplied counts as the latest.
    """
    ordered = sorted(matches, key=lambda t: t.date)
    return ordered[-size:]


def expected_amount(
    obligation: KnownObligation,
    window: Sequence[Transaction],
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> float | None:
    """Average of the window, or the obligation's own reference amount when
    the history is too short to average."""
    if len(window) >= settings.anomaly_min_matches:
        return fmean(t.magnitude for t in window)
    if window and obligation.reference_amount is not None:
        return abs(obligation.reference_amount)
    return None


def check_obligation(
    obligation: KnownObligation,
    transactions: Sequence[Transaction],
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> Anomaly | None:
    window = recent_window(matching_transactions(obligation, transactions), settings.anomaly_window)
    average = expected_amount(obligation, window, settings)
    if average is None:
        return None
    if average == 0:
        logger.debug("[ANOMALY] Skipping '%s': expected amount is zero.", obligation.name)
        return None

    latest = window[-1].magnitude
    relative_deviation = abs(latest - average) / average
    if relative_deviation <= settings.anomaly_threshold:
        return None

    severity = "high" if relative_deviation > settings.anomaly_high_threshold else "medium"
    return Anomaly(
        entity_reference=obligation.id or obligation.name,
        entity_kind=obligation.kind,
        name=obligation.name,
        expected_amount=to_cents(average),
        actual_amount=to_cents(latest),
        variance_percent=round_half_up((latest - average) / average * 100, 1),
        severity=severity,
        sample_size=len(window),
    )


def detect_anomalies(
    obligations: Iterable[KnownObligation],
    transactions: Sequence[Transaction],
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> list[Anomaly]:
    anomalies: list[Anomaly] = []
    for obligation in obligations:
        anomaly = check_obligation(obligation, transactions, settings)
        if anomaly is None:
            continue
        logger.info(
            "[ANOMALY] '%s' charged %.2f against an average of %.2f (%+.1f%%, %s).",
            anomaly.name,
            anomaly.actual_amount,
            anomaly.expected_amount,
            anomaly.variance_percent,
            anomaly.severity,
        )
        anomalies.append(anomaly)
    return anomalies
