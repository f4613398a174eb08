"""
System / health routes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.core.dependencies import Services, get_services

router = APIRouter(tags=["System"])


@router.get("/api/health")
async def health(services: Services = Depends(get_services)):
    chain_health = await services.ledger.health_check()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "server": True,
            "blockchain": {
                "configured": services.ledger.configured,
                "healthy": chain_health.get("healthy", False),
                "details": chain_health,
            },
            "ai": {
                "configured": services.classifier.configured,
                "models": services.classifier.models,
            },
            "ipfs": {
                "configured": services.pinner.configured,
            },
        },
    }


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots():
    return "User-agent: *\nDisallow: /"
