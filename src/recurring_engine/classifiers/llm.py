import os

from openai import OpenAI
from pydantic import ValidationError

from recurring_engine.logger import get_logger
from recurring_engine.models import CandidateClassification, RecurringCandidate

from .base import CandidateClassifier

logger = get_logger(__name__)

PROMPT_TEMPLATE = """
Classify this recurring charge detected in a family's transaction history.
Description: {description}
Average amount: {average_amount:.2f}
Charged every {frequency_days} days ({transaction_count} charges, amounts vary by {amount_variance:.2f})
Last charged: {last_transaction_date}
Recent descriptions: {samples}

Reply with a single JSON object and nothing else:
{{"merchant": "<clean merchant name>",
  "type": "bill" or "subscription",
  "category": "<budget category>",
  "confidence": <number between 0 and 1>,
  "reasoning": "<one sentence>"}}
"""


class LLMCandidateClassifier(CandidateClassifier):
    def __init__(self, api_key: str | None = None, model: str = "gpt-4o-mini", base_url: str | None = None):
        self.client = OpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url or os.getenv("OPENAI_BASE_URL") or None
        )
        self.model = model

    @staticmethod
    def build_prompt(candidate: RecurringCandidate) -> str:
        samples = "; ".join(t.description for t in candidate.sample_transactions)
        return PROMPT_TEMPLATE.format(
            description=candidate.description,
            average_amount=candidate.average_amount,
            frequency_days=candidate.frequency_days,
            transaction_count=candidate.transaction_count,
            amount_variance=candidate.amount_variance,
            last_transaction_date=candidate.last_transaction_date.isoformat(),
            samples=samples or candidate.description,
        )

    def classify(self, candidate: RecurringCandidate) -> CandidateClassification | None:
        try:
            response = self.client.responses.create(
                model=self.model,
                instructions="You are a careful household finance assistant.",
                input=self.build_prompt(candidate),
                temperature=0.0
            )
        except Exception as e:
            logger.error(f"LLM Error: {e}")
            return None

        text = self._extract_output_text(response)
        if text is None:
            logger.warning("[CLASSIFY] Empty LLM response for '%s'.", candidate.description)
            return None

        try:
            classification = CandidateClassification.model_validate_json(self._strip_fences(text))
        except ValidationError as e:
            logger.warning("[CLASSIFY] Unusable LLM response for '%s': %s", candidate.description, e)
            return None
        return classification.model_copy(update={"source": "llm"})

    @staticmethod
    def _strip_fences(text: str) -> str:
        cleaned = text.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
            cleaned = cleaned.rsplit("```", 1)[0]
        return cleaned.strip()

    @staticmethod
    def _extract_output_text(response: object) -> str | None:
        output_text = getattr(response, "output_text", None)
        if isinstance(output_text, str) and output_text:
            return output_text

        parts: list[str] = []
        for item in getattr(response, "output", None) or []:
            for block in getattr(item, "content", None) or []:
                if getattr(block, "type", None) in {"output_text", "text"}:
                    text = getattr(block, "text", None)
                    if text:
                        parts.append(text)

        return "".join(parts) or None

    def learn(self, candidate: RecurringCandidate, classification: CandidateClassification) -> None:
        # Confirmed classifications are remembered by the merchant matcher instead.
        pass
