from typing import Annotated

from fastapi import APIRouter, Depends

from recurring_engine.api.dependencies import get_detector, get_pipeline
from recurring_engine.api.schemas import (
    DetectAnomaliesRequest,
    DetectAnomaliesResponse,
    DetectRecurringRequest,
    DetectRecurringResponse,
)
from recurring_engine.detector import RecurringDetector
from recurring_engine.domain.transactions import coerce_transactions
from recurring_engine.logger import get_logger
from recurring_engine.services.classification import ClassificationPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/detect")


@router.post("/recurring", response_model=DetectRecurringResponse)
async def detect_recurring(
    req: DetectRecurringRequest,
    detector: Annotated[RecurringDetector, Depends(get_detector)],
    pipeline: Annotated[ClassificationPipeline, Depends(get_pipeline)],
) -> DetectRecurringResponse:
    transactions, skipped = coerce_transactions(req.transactions)

    min_transactions = detector.settings.min_transactions
    if len(transactions) < min_transactions:
        logger.info(
            "[DETECT] Only %d valid transaction(s); at least %d needed.",
            len(transactions),
            min_transactions,
        )
        return DetectRecurringResponse(
            candidates=[],
            new_candidates=[],
            transactions_analyzed=len(transactions),
            transactions_skipped=skipped,
            message=f"At least {min_transactions} transactions are needed to detect recurring charges.",
        )

    candidates = detector.detect_recurring(transactions)
    new_candidates = detector.exclude_known(candidates, req.known_obligations)
    response = DetectRecurringResponse(
        candidates=candidates,
        new_candidates=new_candidates,
        transactions_analyzed=len(transactions),
        transactions_skipped=skipped,
    )

    if req.classify:
        batch = await pipeline.classify_candidates(new_candidates)
        response.accepted = batch.accepted
        response.rejected = batch.rejected
        response.unclassified = batch.unclassified

    return response


@router.post("/anomalies", response_model=DetectAnomaliesResponse)
async def detect_anomalies(
    req: DetectAnomaliesRequest,
    detector: Annotated[RecurringDetector, Depends(get_detector)],
) -> DetectAnomaliesResponse:
    transactions, skipped = coerce_transactions(req.transactions)
    anomalies = detector.detect_anomalies(req.known_obligations, transactions)
    return DetectAnomaliesResponse(
        anomalies=anomalies,
        transactions_analyzed=len(transactions),
        transactions_skipped=skipped,
    )
