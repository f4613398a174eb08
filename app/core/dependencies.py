"""
FastAPI dependencies.

Adapters, the store and the pipeline are built once in the app lifespan
(`build_services`) and kept on `app.state`. Route handlers receive them
through these getters, so tests can swap any of them by assigning a fake
to `app.state` or via `app.dependency_overrides`.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from app.config import Settings, settings
from app.detection.pipeline import VerificationPipeline
from app.integrations.chain import ChainLedgerClient
from app.integrations.huggingface import HuggingFaceClassifier
from app.integrations.pinata import PinataClient
from app.services.file_service import TempFileStore
from app.services.verification_store import InMemoryVerificationStore, VerificationStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    classifier: HuggingFaceClassifier
    pinner: PinataClient
    ledger: ChainLedgerClient
    store: VerificationStore
    files: TempFileStore
    pipeline: VerificationPipeline


def build_services(s: Settings = settings) -> Services:
    classifier = HuggingFaceClassifier.from_settings(s)
    pinner = PinataClient.from_settings(s)
    ledger = ChainLedgerClient.from_settings(s)
    store = InMemoryVerificationStore()
    files = TempFileStore(upload_dir=s.upload_dir, max_age_sec=s.temp_file_max_age_sec)
    pipeline = VerificationPipeline(classifier, pinner, ledger, store, files)

    logger.info(f"[STARTUP] Blockchain: {'CONNECTED' if ledger.configured else 'SIMULATED'}")
    logger.info(f"[STARTUP] AI Service: {'CONFIGURED' if classifier.configured else 'MOCK MODE'}")
    logger.info(f"[STARTUP] IPFS: {'CONFIGURED' if pinner.configured else 'MOCK MODE'}")
    return Services(classifier, pinner, ledger, store, files, pipeline)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_pipeline(request: Request) -> VerificationPipeline:
    return request.app.state.services.pipeline


def get_store(request: Request) -> VerificationStore:
    return request.app.state.services.store
