"""
Verification routes.

    POST /api/verify        multipart 'file' → full pipeline
    POST /api/verify/hash   JSON {contentHash, trustScore, metadata} → pin + anchor
    GET  /api/verify/{hash} local record, else ledger record, else 404
    GET  /api/history       newest-first slice of the store
    POST /api/upload        validate + hash only, no pipeline

Failures are raised as VerificationError subclasses and rendered by the
handlers registered in app/main.py.
"""

import json
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.dependencies import Services, get_pipeline, get_services, get_store
from app.core.errors import ValidationError
from app.core.file_validator import validate_upload
from app.detection.hashing import get_safe_hash, normalize_hash
from app.detection.pipeline import VerificationPipeline
from app.detection.scoring import round_half_up
from app.schemas.verification import FileTypeInfo, HistoryResponse, UploadResponse, VerificationRecord
from app.services.verification_store import VerificationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Verification"])


async def _read_upload(request: Request) -> tuple[bytes, str, Optional[str]]:
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise ValidationError("No file uploaded", step="upload")

    form = await request.form()
    file_obj = form.get("file")
    if file_obj is None or isinstance(file_obj, str):
        raise ValidationError("No file uploaded", step="upload")

    data = await file_obj.read()
    return data, file_obj.filename or "uploaded_file", file_obj.content_type


@router.post("/verify", response_model=VerificationRecord)
async def verify(request: Request, pipeline: VerificationPipeline = Depends(get_pipeline)):
    """Complete verification: validate → hash → AI → IPFS → blockchain."""
    data, filename, declared_type = await _read_upload(request)
    logger.info(f"[VERIFY] New request: {filename} ({len(data) / 1024:.1f} KB)")
    return await pipeline.run(data, filename=filename, declared_type=declared_type)


@router.post("/verify/hash", response_model=VerificationRecord)
async def verify_hash(request: Request, pipeline: VerificationPipeline = Depends(get_pipeline)):
    """Anchor a score for content hashed elsewhere."""
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")

    content_hash = payload.get("contentHash")
    if not content_hash or not isinstance(content_hash, str):
        raise ValidationError("Content hash required")

    trust_score = payload.get("trustScore")
    if (
        isinstance(trust_score, bool)
        or not isinstance(trust_score, (int, float))
        or not math.isfinite(trust_score)
        or trust_score < 0
        or trust_score > 100
    ):
        raise ValidationError("Valid trust score (0-100) required")

    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object")

    content_hash = normalize_hash(content_hash)
    logger.info(f"[VERIFY/HASH] Processing: {content_hash[:16]}...")
    return await pipeline.run_prehashed(content_hash, round_half_up(trust_score), metadata)


@router.get("/verify/{content_hash}")
async def lookup(content_hash: str, services: Services = Depends(get_services)):
    content_hash = normalize_hash(content_hash)

    local = services.store.find_by_hash(content_hash)
    if local:
        return local.model_dump(by_alias=True)

    entry = await services.ledger.get_by_hash(content_hash)
    if entry:
        result = {"source": "blockchain", **entry.to_dict()}
        result["metadata"] = await services.pinner.get_content(entry.metadata_hash)
        return result

    return JSONResponse(status_code=404, content={"success": False, "error": "Verification not found"})


@router.get("/history", response_model=HistoryResponse)
async def history(
    limit: Optional[int] = Query(None, ge=0),
    store: VerificationStore = Depends(get_store),
):
    limit = limit or settings.history_default_limit
    recent = store.list_recent(limit)
    return HistoryResponse(count=store.count(), returned=len(recent), verifications=recent)


@router.post("/upload", response_model=UploadResponse)
async def upload(request: Request):
    """Validate and hash an upload without running the pipeline."""
    data, filename, declared_type = await _read_upload(request)
    detected = validate_upload(data, declared_type)
    return UploadResponse(
        content_hash=get_safe_hash(data),
        file_type=FileTypeInfo(mime=detected.mime, ext=detected.ext),
        original_name=filename,
        size=len(data),
    )
