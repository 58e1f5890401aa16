from fastapi import APIRouter

from japan_listings.api.v1 import pipeline, translation

api_router = APIRouter()

api_router.include_router(pipeline.router, prefix="/pipeline", tags=["pipeline"])
api_router.include_router(translation.router, prefix="/translation", tags=["translation"])
