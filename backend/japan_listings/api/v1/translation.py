from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from japan_listings.api.deps import get_translation_service
from japan_listings.schemas.listing import ListingRecord, PropertyType
from japan_listings.services.translation.errors import TranslationError
from japan_listings.services.translation.service import TranslationService

router = APIRouter()


class PreviewRequest(BaseModel):
    url: str
    title: str
    location: str
    description: str | None = None
    property_type: str = PropertyType.OTHER.value
    source_website: str = "preview"


@router.get("/stats")
async def translation_stats(service: TranslationService = Depends(get_translation_service)):
    stats = await service.get_cache_stats()
    return {**stats.to_dict(), "hit_rate": service.get_hit_rate()}


@router.delete("/cache")
async def clear_translation_cache(service: TranslationService = Depends(get_translation_service)):
    try:
        await service.clear_cache()
    except TranslationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"cleared": True}


@router.post("/preview")
async def preview_translation(
    req: PreviewRequest,
    service: TranslationService = Depends(get_translation_service),
):
    """Translate one listing without storing it."""
    record = ListingRecord(
        url=req.url,
        title=req.title,
        location=req.location,
        description=req.description,
        property_type=PropertyType.normalize(req.property_type).value,
        source_website=req.source_website,
    )
    translated = await service.translate_listing(record)
    return {
        "url": translated.url,
        "title_en": translated.title_en,
        "location_en": translated.location_en,
        "description_en": translated.description_en,
        "translation_status": translated.translation_status.value,
    }
