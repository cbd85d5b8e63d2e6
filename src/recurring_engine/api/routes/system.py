from typing import Annotated

from fastapi import APIRouter, Depends

from recurring_engine.api.dependencies import get_detector
from recurring_engine.core.configuration import describe_config
from recurring_engine.detector import RecurringDetector

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/config")
async def get_config(
    detector: Annotated[RecurringDetector, Depends(get_detector)],
) -> dict[str, object]:
    return describe_config(detector.settings)
