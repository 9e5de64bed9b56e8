from fastapi import APIRouter

from app.core.config import settings
from app.schemas.response import APIResponse
from app.services.cache_service import cache_service

router = APIRouter()

@router.get("/health", response_model=APIResponse[dict])
async def health():
    cache_ok = await cache_service.health_check()
    return APIResponse(
        message="Service is running",
        data={
            "status": "ok",
            "version": settings.VERSION,
            "cache": "ok" if cache_ok else "degraded",
            "cache_stats": await cache_service.get_cache_stats(),
        }
    )
