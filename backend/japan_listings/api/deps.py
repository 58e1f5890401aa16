from fastapi import Request

from japan_listings.services.pipeline.orchestrator import DataProcessingPipeline
from japan_listings.services.translation.service import TranslationService


def get_pipeline(request: Request) -> DataProcessingPipeline:
    return request.app.state.pipeline


def get_translation_service(request: Request) -> TranslationService:
    return request.app.state.translation_service
