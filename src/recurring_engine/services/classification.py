import asyncio
from dataclasses import dataclass, field

from recurring_engine.logger import get_logger
from recurring_engine.manager import ClassifierService
from recurring_engine.models import ClassifiedCandidate, RecurringCandidate

logger = get_logger(__name__)


@dataclass
class ClassificationBatch:
    accepted: list[ClassifiedCandidate] = field(default_factory=list)
    rejected: list[ClassifiedCandidate] = field(default_factory=list)
    unclassified: list[RecurringCandidate] = field(default_factory=list)


class ClassificationPipeline:
    def __init__(self, service: ClassifierService, min_confidence: float = 0.6) -> None:
        self.service = service
        self.min_confidence = min_confidence

    async def classify(self, candidate: RecurringCandidate) -> ClassifiedCandidate | None:
        try:
            classification = await asyncio.to_thread(self.service.classify, candidate)
        except Exception:
            # The detected candidate stays valid without classifier fields.
            logger.exception("[CLASSIFY] Classifier failed for '%s'.", candidate.description)
            return None
        if classification is None:
            return None
        return ClassifiedCandidate(candidate=candidate, classification=classification)

    async def classify_candidates(self, candidates: list[RecurringCandidate]) -> ClassificationBatch:
        batch = ClassificationBatch()
        for candidate in candidates:
            classified = await self.classify(candidate)
            if classified is None:
                batch.unclassified.append(candidate)
            elif classified.confidence >= self.min_confidence:
                batch.accepted.append(classified)
            else:
                logger.info(
                    "[CLASSIFY] Confidence %.2f below threshold %.2f for '%s'; discarding.",
                    classified.confidence,
                    self.min_confidence,
                    candidate.description,
                )
                batch.rejected.append(classified)

        logger.info(
            "[CLASSIFY] accepted=%d rejected=%d unclassified=%d",
            len(batch.accepted),
            len(batch.rejected),
            len(batch.unclassified),
        )
        return batch

    async def confirm(self, classified: ClassifiedCandidate) -> None:
        await asyncio.to_thread(self.service.learn, classified.candidate, classified.classification)
