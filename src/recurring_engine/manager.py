import os

from recurring_engine.classifiers.base import CandidateClassifier
from recurring_engine.classifiers.llm import LLMCandidateClassifier
from recurring_engine.classifiers.memory import KnownMerchantMatcher
from recurring_engine.logger import get_logger
from recurring_engine.models import CandidateClassification, RecurringCandidate

logger = get_logger(__name__)


class ClassifierService:
    def __init__(self, memory_threshold: float = 90.0, data_dir: str = "."):
        self.classifiers: list[CandidateClassifier] = []

        # 1. Merchants the user already confirmed
        self.memory = KnownMerchantMatcher(
            data_path=os.path.join(data_dir, "merchants.json"),
            threshold=memory_threshold
        )
        self.classifiers.append(self.memory)

        # 2. LLM, only when configured
        api_key = os.getenv("OPENAI_API_KEY")
        if api_key:
            model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
            base_url = os.getenv("OPENAI_BASE_URL")
            self.llm = LLMCandidateClassifier(api_key=api_key, model=model, base_url=base_url)
            self.classifiers.append(self.llm)
            logger.info(f"LLM classifier enabled: model={model}, base_url={base_url or 'default'}")
        else:
            self.llm = None
            logger.warning("OPENAI_API_KEY not found. LLM classifier disabled.")

    def classify(self, candidate: RecurringCandidate) -> CandidateClassification | None:
        for classifier in self.classifiers:
            classifier_name = classifier.__class__.__name__
            result = classifier.classify(candidate)
            if result:
                logger.debug(
                    f"{classifier_name} classified '{candidate.description[:50]}' as "
                    f"{result.type} '{result.merchant}' (confidence: {result.confidence:.2f})"
                )
                return result
            logger.debug(f"{classifier_name} returned: None")

        logger.debug(f"No classifier matched for: '{candidate.description[:50]}'")
        return None

    def learn(self, candidate: RecurringCandidate, classification: CandidateClassification) -> None:
        for classifier in self.classifiers:
            classifier.learn(candidate, classification)

    def clear_memory(self) -> None:
        self.memory.clear()
        logger.info("Merchant memory cleared.")
