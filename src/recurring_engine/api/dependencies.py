from fastapi import HTTPException, Request

from recurring_engine.detector import RecurringDetector
from recurring_engine.manager import ClassifierService
from recurring_engine.services.classification import ClassificationPipeline


def get_detector(request: Request) -> RecurringDetector:
    detector = getattr(request.app.state, "detector", None)
    if not detector:
        raise HTTPException(status_code=500, detail="Detector not initialized")
    return detector


def get_service(request: Request) -> ClassifierService:
    service = getattr(request.app.state, "service", None)
    if not service:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_pipeline(request: Request) -> ClassificationPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline
