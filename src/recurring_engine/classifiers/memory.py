import json
import os
from typing import Dict, Optional

from pydantic import ValidationError
from rapidfuzz import fuzz, process

from recurring_engine.detection.text import normalize
from recurring_engine.logger import get_logger
from recurring_engine.models import CandidateClassification, RecurringCandidate

from .base import CandidateClassifier

logger = get_logger(__name__)


class KnownMerchantMatcher(CandidateClassifier):
    def __init__(self, data_path: str = "merchants.json", threshold: float = 90.0):
        self.data_path = data_path
        self.threshold = threshold
        self.memory: Dict[str, dict] = {} # normalized description -> classification fields
        self.load()

    def load(self) -> None:
        if os.path.exists(self.data_path):
            try:
                with open(self.data_path, "r", encoding="utf-8") as f:
                    self.memory = json.load(f)
                if not isinstance(self.memory, dict):
                    logger.warning("[MEMORY] %s does not hold an object; starting empty.", self.data_path)
                    self.memory = {}
            except json.JSONDecodeError:
                logger.warning("[MEMORY] %s is not valid JSON; starting empty.", self.data_path)
                self.memory = {}

    def save(self) -> None:
        with open(self.data_path, "w", encoding="utf-8") as f:
            json.dump(self.memory, f, indent=2)

    def _build(self, key: str, confidence: float, source: str) -> Optional[CandidateClassification]:
        entry = self.memory[key]
        if not isinstance(entry, dict):
            logger.warning("[MEMORY] Ignoring entry for '%s': expected an object, got %s.", key, type(entry).__name__)
            return None
        try:
            return CandidateClassification.model_validate({**entry, "confidence": confidence, "source": source})
        except ValidationError as e:
            logger.warning("[MEMORY] Ignoring unusable entry for '%s': %s", key, e)
            return None

    def classify(self, candidate: RecurringCandidate) -> Optional[CandidateClassification]:
        if not self.memory:
            return None

        key = candidate.cluster_key
        if key in self.memory:
            return self._build(key, 1.0, "memory_exact")

        result = process.extractOne(key, self.memory.keys(), scorer=fuzz.token_sort_ratio)
        if result:
            match_key, score, _ = result
            if score >= self.threshold:
                return self._build(match_key, score / 100.0, "memory_fuzzy")

        return None

    def learn(self, candidate: RecurringCandidate, classification: CandidateClassification) -> None:
        key = candidate.cluster_key or normalize(candidate.description)
        self.memory[key] = classification.model_dump(include={"merchant", "type", "category"})
        self.save()

    def clear(self) -> None:
        self.memory = {}
        self.save()
