"""
DeepTrust verification API.

Pipeline: file upload → validation → AI analysis → IPFS metadata → blockchain anchor.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables at the very beginning
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from app.api import admin, system, verification  # noqa: E402
from app.config import settings  # noqa: E402
from app.core.dependencies import build_services  # noqa: E402
from app.core.errors import VerificationError  # noqa: E402
from app.integrations import http_client  # noqa: E402


async def periodic_cleanup(app: FastAPI):
    """Background task: sweep stale temporary uploads."""
    while True:
        try:
            await asyncio.sleep(settings.cleanup_interval_sec)
            cleaned = await asyncio.to_thread(app.state.services.files.cleanup_old_files)
            logger.debug(f"[CLEANUP] Periodic cleanup completed ({cleaned} removed)")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"[CLEANUP] Error in periodic cleanup: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    app.state.services = build_services(settings)
    await http_client.initialize()

    cleanup_task = None
    if not os.getenv("TESTING"):
        cleanup_task = asyncio.create_task(periodic_cleanup(app))
        logger.info("[STARTUP] Background cleanup task started")

    yield

    if cleanup_task:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        logger.info("[SHUTDOWN] Background cleanup task stopped")
    await http_client.close()


app = FastAPI(title="DeepTrust Verification API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(VerificationError)
async def verification_error_handler(request: Request, exc: VerificationError):
    logger.info(f"[ERROR HANDLER] {exc.status_code} at step '{exc.step}': {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "step": exc.step},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"[ERROR HANDLER] Unexpected error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": f"Verification failed: {exc}", "step": "unknown"},
    )


app.include_router(system.router)
app.include_router(verification.router)
app.include_router(admin.router)
