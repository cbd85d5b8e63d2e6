from typing import Annotated

from fastapi import APIRouter, Depends

from recurring_engine.api.dependencies import get_pipeline, get_service
from recurring_engine.logger import get_logger
from recurring_engine.manager import ClassifierService
from recurring_engine.models import ClassifiedCandidate
from recurring_engine.services.classification import ClassificationPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/candidates")


@router.post("/confirm")
async def confirm_candidate(
    classified: ClassifiedCandidate,
    pipeline: Annotated[ClassificationPipeline, Depends(get_pipeline)],
) -> dict[str, str]:
    logger.info(
        "[CONFIRM] '%s' -> %s '%s' (%s)",
        classified.candidate.description,
        classified.type,
        classified.merchant,
        classified.category,
    )
    await pipeline.confirm(classified)
    return {"status": "success", "merchant": classified.merchant}


@router.post("/clear-memory")
async def clear_memory(
    service: Annotated[ClassifierService, Depends(get_service)],
) -> dict[str, str]:
    service.clear_memory()
    return {"status": "success", "message": "Merchant memory cleared"}
