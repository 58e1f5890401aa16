from fastapi import APIRouter, Depends, HTTPException

from japan_listings.api.deps import get_pipeline
from japan_listings.scrapers.registry import list_scrapers
from japan_listings.services.pipeline.orchestrator import DataProcessingPipeline

router = APIRouter()


@router.post("/run/{site}")
async def run_pipeline(site: str, pipeline: DataProcessingPipeline = Depends(get_pipeline)):
    """Scrape, translate and store one site. Runs to completion before responding."""
    if site not in list_scrapers():
        raise HTTPException(status_code=404, detail=f"Unknown site '{site}'")
    summary = await pipeline.process_site(site)
    return summary.to_dict()


@router.get("/health")
async def pipeline_health(pipeline: DataProcessingPipeline = Depends(get_pipeline)):
    return await pipeline.health_status()
