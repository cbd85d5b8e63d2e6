from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from recurring_engine.domain.dates import parse_date

PeriodicityClass = Literal["stable_monthly", "irregular", "insufficient_data"]
FrequencyLabel = Literal["weekly", "biweekly", "monthly", "quarterly", "annual"]
ObligationKind = Literal["bill", "subscription"]
Severity = Literal["medium", "high"]


class Transaction(BaseModel):
    description: str = ""
    amount: float = Field(allow_inf_nan=False)
    date: date
    id: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> date:
        parsed = parse_date(value)
        if parsed is None:
            raise ValueError(f"unparseable date: {value!r}")
        return parsed

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @property
    def magnitude(self) -> float:
        return abs(self.amount)


class RecurringCandidate(BaseModel):
    """A stable monthly cluster awaiting external classification."""
    description: str
    cluster_key: str
    average_amount: float
    frequency_days: int
    frequency: Optional[FrequencyLabel] = None
    transaction_count: int
    amount_variance: float
    variance_normal: bool
    pattern_score: int # 0-100, derived from interval and amount consistency
    last_transaction_date: date
    last_amount: float
    next_expected_date: date
    due_day: int = Field(ge=1, le=31) # day of month of next_expected_date
    sample_transactions: list[Transaction]


class CandidateClassification(BaseModel):
    merchant: str
    type: ObligationKind
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: Optional[str] = None
    source: str = "unknown" # "memory_exact", "memory_fuzzy", "llm"


class ClassifiedCandidate(BaseModel):
    candidate: RecurringCandidate
    classification: CandidateClassification

    @property
    def merchant(self) -> str:
        return self.classification.merchant

    @property
    def type(self) -> ObligationKind:
        return self.classification.type

    @property
    def category(self) -> str:
        return self.classification.category

    @property
    def confidence(self) -> float:
        return self.classification.confidence


class KnownObligation(BaseModel):
    name: str
    reference_amount: Optional[float] = Field(default=None, allow_inf_nan=False) # expected charge when history is short
    id: Optional[str] = None
    kind: Optional[ObligationKind] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)


class Anomaly(BaseModel):
    type: Literal["amount_change"] = "amount_change"
    entity_reference: Optional[str] = None
    entity_kind: Optional[ObligationKind] = None
    name: str
    expected_amount: float
    actual_amount: float
    variance_percent: float
    severity: Severity
    sample_size: int
