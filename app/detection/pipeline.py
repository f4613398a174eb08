"""
Verification pipeline — public entry point for the /api/verify routes.

`VerificationPipeline.run` moves one upload through:

    received → validated → hashed → classified → pinned → anchored → completed

with an absorbing `errored` stage reachable from `received` (bad upload) and
`classified` (terminal classifier failure). Pinning and anchoring never abort
a run: they degrade to mock CIDs and to a failed/simulated ledger proof.
The record is appended to the store only once every stage has finished.
"""

import asyncio
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from app.core.errors import AdapterTerminalError, AdapterTransientError, ValidationError
from app.core.file_validator import DetectedType, validate_upload
from app.detection import scoring
from app.detection.hashing import get_safe_hash
from app.integrations.chain import ChainLedgerClient
from app.integrations.huggingface import HuggingFaceClassifier
from app.integrations.pinata import PinataClient, PinResult
from app.schemas.verification import AnalysisDetail, BlockchainProof, VerificationRecord
from app.services.file_service import TempFileStore, log_memory
from app.services.verification_store import VerificationStore

logger = logging.getLogger(__name__)

ID_SUFFIX_LENGTH = 8


class PipelineStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    HASHED = "hashed"
    CLASSIFIED = "classified"
    PINNED = "pinned"
    ANCHORED = "anchored"
    COMPLETED = "completed"
    ERRORED = "errored"


def _generate_verification_id() -> str:
    alphabet = string.ascii_letters + string.digits
    suffix = ''.join(secrets.choice(alphabet) for _ in range(ID_SUFFIX_LENGTH))
    return f"dt_{int(time.time() * 1000)}_{suffix}"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class VerificationPipeline:
    def __init__(
        self,
        classifier: HuggingFaceClassifier,
        pinner: PinataClient,
        ledger: ChainLedgerClient,
        store: VerificationStore,
        files: TempFileStore,
    ):
        self.classifier = classifier
        self.pinner = pinner
        self.ledger = ledger
        self.store = store
        self.files = files

    def _enter(self, run_id: str, stage: PipelineStage) -> PipelineStage:
        logger.info(f"[PIPELINE] {run_id} → {stage.value}")
        return stage

    async def run(
        self,
        data: bytes,
        filename: Optional[str] = None,
        declared_type: Optional[str] = None,
    ) -> VerificationRecord:
        run_id = _generate_verification_id()
        self._enter(run_id, PipelineStage.RECEIVED)
        log_memory(f"Pre-Verify: {filename}")

        try:
            detected: DetectedType = validate_upload(data, declared_type)
        except ValidationError as e:
            self._enter(run_id, PipelineStage.ERRORED)
            logger.warning(f"[PIPELINE] {run_id} rejected: {e.message}")
            raise
        self._enter(run_id, PipelineStage.VALIDATED)

        content_hash = get_safe_hash(data)
        temp_path = await asyncio.to_thread(self.files.save, data, content_hash, detected.ext)
        self._enter(run_id, PipelineStage.HASHED)
        logger.info(f"[PIPELINE] {run_id} hash={content_hash[:16]}... type={detected.mime}")

        try:
            if self.store.find_by_hash(content_hash):
                logger.info(f"[PIPELINE] Content {content_hash[:16]}... previously verified; re-verifying")

            try:
                classification = await self.classifier.classify(data)
            except AdapterTerminalError as e:
                self._enter(run_id, PipelineStage.ERRORED)
                logger.error(f"[PIPELINE] {run_id} classification failed: {e.message}")
                raise
            self._enter(run_id, PipelineStage.CLASSIFIED)

            ai_p = classification.ai_probability
            real_p = classification.real_probability
            score = scoring.trust_score(real_p)
            conf = scoring.confidence(ai_p, real_p)
            status = scoring.status_for_score(score)
            is_ai = scoring.is_ai_generated(ai_p, real_p)
            analysis = AnalysisDetail(
                ai_probability=ai_p,
                real_probability=real_p,
                model_used=classification.model_used,
                is_mock=classification.is_mock,
            )
            analyzed_at = _utcnow_iso()

            metadata_payload = {
                "contentHash": content_hash,
                "originalFilename": filename,
                "fileType": {"mime": detected.mime, "ext": detected.ext},
                "fileSize": len(data),
                "analysis": {
                    "trustScore": score,
                    "confidence": conf,
                    "isAIGenerated": is_ai,
                    "status": status,
                    "details": analysis.model_dump(by_alias=True),
                },
                "analyzedAt": analyzed_at,
            }
            pin = await self._pin(metadata_payload, f"deeptrust-{content_hash[:8]}")
            self._enter(run_id, PipelineStage.PINNED)

            proof = await self._anchor(content_hash, score, pin.cid)
            self._enter(run_id, PipelineStage.ANCHORED)

            record = VerificationRecord(
                id=run_id,
                source="upload",
                content_hash=content_hash,
                original_filename=filename,
                declared_type=declared_type,
                file_type=detected.mime,
                file_size=len(data),
                trust_score=score,
                confidence=conf,
                is_ai_generated=is_ai,
                status=status,
                analysis=analysis,
                metadata_cid=pin.cid,
                metadata_url=pin.url,
                metadata_is_mock=pin.is_mock,
                blockchain_proof=proof,
                timestamp=_utcnow_iso(),
            )
            self.store.append(record)
            self._enter(run_id, PipelineStage.COMPLETED)
            logger.info(
                f"[PIPELINE] {run_id} complete: score={score}, status={status.upper()}, "
                f"model={classification.model_used}"
            )
            return record
        finally:
            await asyncio.to_thread(self.files.delete, temp_path)
            log_memory(f"Post-Verify: {filename}")

    async def run_prehashed(self, content_hash: str, trust_score: int, metadata: Optional[dict] = None) -> VerificationRecord:
        """Pin and anchor a score computed elsewhere. No classification happens."""
        run_id = _generate_verification_id()
        logger.info(f"[PIPELINE] {run_id} pre-hashed run for {content_hash[:16]}...")

        pin = await self._pin({
            "contentHash": content_hash,
            "trustScore": trust_score,
            "metadata": metadata or {},
            "verifiedAt": _utcnow_iso(),
        }, "deeptrust-verification")
        proof = await self._anchor(content_hash, trust_score, pin.cid)

        record = VerificationRecord(
            id=run_id,
            source="hash",
            content_hash=content_hash,
            trust_score=trust_score,
            status=scoring.status_for_score(trust_score),
            metadata_cid=pin.cid,
            metadata_url=pin.url,
            metadata_is_mock=pin.is_mock,
            blockchain_proof=proof,
            timestamp=_utcnow_iso(),
        )
        self.store.append(record)
        return record

    async def _pin(self, metadata: dict, name: str) -> PinResult:
        try:
            return await self.pinner.pin_json(metadata, name)
        except Exception as e:
            logger.error(f"[PIPELINE] Pinning raised unexpectedly, using mock CID: {e}")
            return self.pinner.mock_result(metadata, reason=str(e))

    async def _anchor(self, content_hash: str, score: int, metadata_cid: str) -> BlockchainProof:
        try:
            result = await self.ledger.anchor(content_hash, score, metadata_cid)
        except (AdapterTerminalError, AdapterTransientError) as e:
            logger.error(f"[PIPELINE] Blockchain anchoring failed: {e.message}")
            return BlockchainProof(is_mock=True, error=e.message)
        except Exception as e:
            logger.exception(f"[PIPELINE] Blockchain anchoring raised unexpectedly: {e}")
            return BlockchainProof(is_mock=True, error=str(e) or type(e).__name__)

        if result.is_mock:
            logger.info("[PIPELINE] Blockchain not configured, using simulated proof")
        return BlockchainProof(
            tx_hash=result.tx_hash,
            block_number=result.block_number,
            verification_id=result.verification_id,
            is_mock=result.is_mock,
            explorer_url=None if result.is_mock else result.explorer_url,
        )
