from collections.abc import Iterable, Sequence
from time import perf_counter

from recurring_engine.core.configuration import DEFAULT_SETTINGS, DetectionSettings
from recurring_engine.detection import anomalies, candidates, clustering, periodicity
from recurring_engine.detection.matching import keys_match
from recurring_engine.detection.text import normalize
from recurring_engine.domain.transactions import TransactionLike, coerce_transactions
from recurring_engine.logger import get_logger
from recurring_engine.models import Anomaly, KnownObligation, RecurringCandidate

logger = get_logger(__name__)


class RecurringDetector:
    """Entry point for recurring-charge and anomaly detection.

    Holds nothing but its settings, so one instance can serve concurrent
    requests; every call is a pure function of its arguments.
    """

    def __init__(self, settings: DetectionSettings = DEFAULT_SETTINGS):
        self.settings = settings

    def detect_recurring(self, transactions: Iterable[TransactionLike]) -> list[RecurringCandidate]:
        started = perf_counter()
        valid, _ = coerce_transactions(transactions)
        clusters = clustering.cluster_transactions(valid, self.settings)

        results: list[RecurringCandidate] = []
        for cluster in clusters:
            report = periodicity.analyze(cluster, self.settings)
            logger.debug(
                "[DETECT] Cluster '%s' (%d txn): %s, intervals=%s",
                cluster.key,
                len(cluster),
                report.classification,
                list(report.intervals),
            )
            if report.is_stable:
                results.append(candidates.build_candidate(cluster, report, self.settings))

        # Stable: equal scores keep cluster creation order.
        results.sort(key=lambda c: c.pattern_score, reverse=True)

        logger.info(
            "[DETECT] %d candidate(s) from %d cluster(s) over %d transaction(s) in %.1f ms.",
            len(results),
            len(clusters),
            len(valid),
            (perf_counter() - started) * 1000,
        )
        return results

    def detect_anomalies(
        self,
        obligations: Iterable[KnownObligation],
        transactions: Iterable[TransactionLike],
    ) -> list[Anomaly]:
        valid, _ = coerce_transactions(transactions)
        return anomalies.detect_anomalies(obligations, valid, self.settings)

    def exclude_known(
        self,
        found: Sequence[RecurringCandidate],
        obligations: Iterable[KnownObligation],
    ) -> list[RecurringCandidate]:
        """Drop candidates that already correspond to a tracked obligation."""
        known_keys = [key for key in (normalize(o.name) for o in obligations) if key]
        if not known_keys:
            return list(found)
        # Containment only, no edit distance.
        return [
            candidate for candidate in found
            if not any(keys_match(candidate.cluster_key, key, cutoff=0) for key in known_keys)
        ]


def detect_recurring(
    transactions: Iterable[TransactionLike],
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> list[RecurringCandidate]:
    return RecurringDetector(settings).detect_recurring(transactions)


def detect_anomalies(
    obligations: Iterable[KnownObligation],
    transactions: Iterable[TransactionLike],
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> list[Anomaly]:
    return RecurringDetector(settings).detect_anomalies(obligations, transactions)
