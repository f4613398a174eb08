"""
Housekeeping routes: temp-file sweep and store statistics.
"""

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.dependencies import Services, get_services

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/cleanup")
async def cleanup(services: Services = Depends(get_services)):
    cleaned = await asyncio.to_thread(services.files.cleanup_old_files)
    return {"cleaned": cleaned, "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/stats")
async def stats(services: Services = Depends(get_services)):
    return services.store.stats()
