from typing import Any

from pydantic import BaseModel

from recurring_engine.models import (
    Anomaly,
    ClassifiedCandidate,
    KnownObligation,
    RecurringCandidate,
)


# Transactions stay raw so one malformed record is skipped, not a 422.
class DetectRecurringRequest(BaseModel):
    transactions: list[dict[str, Any]]
    known_obligations: list[KnownObligation] = []
    classify: bool = False


class DetectRecurringResponse(BaseModel):
    candidates: list[RecurringCandidate]
    new_candidates: list[RecurringCandidate]
    accepted: list[ClassifiedCandidate] | None = None
    rejected: list[ClassifiedCandidate] | None = None
    unclassified: list[RecurringCandidate] | None = None
    transactions_analyzed: int
    transactions_skipped: int
    message: str | None = None


class DetectAnomaliesRequest(BaseModel):
    known_obligations: list[KnownObligation]
    transactions: list[dict[str, Any]]


class DetectAnomaliesResponse(BaseModel):
    anomalies: list[Anomaly]
    transactions_analyzed: int
    transactions_skipped: int
