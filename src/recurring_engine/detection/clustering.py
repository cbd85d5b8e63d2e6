from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from recurring_engine.core.configuration import DEFAULT_SETTINGS, DetectionSettings
from recurring_engine.detection.matching import keys_match
from recurring_engine.detection.text import normalize
from recurring_engine.logger import get_logger
from recurring_engine.models import Transaction

logger = get_logger(__name__)


@dataclass
class Cluster:
    key: str
    transactions: list[Transaction] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.transactions)

    @property
    def description(self) -> str:
        return self.transactions[0].description.strip() if self.transactions else self.key


class ClusterRegistry:
    """Clusters in creation order, with every key they have absorbed.

    Assignment is greedy: a key seen before goes back to the cluster it first
    joined; a new key joins the first cluster whose representative it
    matches, so the grouping depends on the order transactions are added.
    When a new key is contained in the representative (a truncated form of
    the same merchant), it becomes the representative; the cluster keeps its
    position.
    """

    def __init__(self, max_edit_distance: int = DEFAULT_SETTINGS.max_edit_distance):
        self.max_edit_distance = max_edit_distance
        self._order: list[Cluster] = []
        self._by_key: dict[str, Cluster] = {}

    def find(self, key: str) -> Cluster | None:
        known = self._by_key.get(key)
        if known is not None:
            return known
        for cluster in self._order:
            if keys_match(key, cluster.key, self.max_edit_distance):
                return cluster
        return None

    def add(self, transaction: Transaction) -> Cluster | None:
        key = normalize(transaction.description)
        if not key:
            return None
        cluster = self.find(key)
        if cluster is None:
            cluster = Cluster(key=key)
            self._order.append(cluster)
        elif key not in self._by_key and key in cluster.key:
            logger.debug("[CLUSTER] Representative '%s' narrowed to '%s'.", cluster.key, key)
            cluster.key = key
        self._by_key.setdefault(key, cluster)
        cluster.transactions.append(transaction)
        return cluster

    def __iter__(self) -> Iterator[Cluster]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)


def cluster_transactions(
    transactions: Iterable[Transaction],
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> list[Cluster]:
    registry = ClusterRegistry(max_edit_distance=settings.max_edit_distance)
    excluded = 0
    for transaction in transactions:
        if registry.add(transaction) is None:
            excluded += 1

    if excluded:
        logger.debug("[CLUSTER] Excluded %d transaction(s) with blank descriptions.", excluded)
    clusters = list(registry)
    logger.debug("[CLUSTER] Built %d cluster(s).", len(clusters))
    return clusters
