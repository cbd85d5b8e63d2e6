from abc import ABC, abstractmethod

from recurring_engine.models import CandidateClassification, RecurringCandidate


class CandidateClassifier(ABC):
    @abstractmethod
    def classify(self, candidate: RecurringCandidate) -> CandidateClassification | None:
        """Name, type and categorize a recurring candidate."""
        pass

    @abstractmethod
    def learn(self, candidate: RecurringCandidate, classification: CandidateClassification) -> None:
        """Remember a confirmed classification."""
        pass
