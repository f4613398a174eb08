"""
Hugging Face Inference API client — AI-generated image classification.

`classify` tries the primary model, then the fallback model, each with
bounded linear-back-off retries on transient errors (rate limit, timeout,
model cold start). When both exhaust their retries, or no API key is set,
a synthetic result biased toward "real" is returned and flagged `is_mock`.

Non-transient failures (bad request, auth, malformed payload) raise
AdapterTerminalError straight away.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional

import aiohttp

from app.config import settings
from app.core.errors import AdapterConfigurationAbsent, AdapterTerminalError, AdapterTransientError
from app.core.retry import SleepFunc, retry_transient
from app.detection.labels import interpret_labels
from app.integrations import http_client as http_module

logger = logging.getLogger(__name__)

# 503 is also what the Inference API returns while a model is loading.
TRANSIENT_STATUSES = {408, 429, 500, 502, 503, 504}

MOCK_MODEL = "mock"
MOCK_MAX_AI_PROBABILITY = 0.4


@dataclass
class ClassificationResult:
    ai_probability: float
    real_probability: float
    model_used: str
    is_mock: bool = False
    mock_reason: Optional[str] = None


class HuggingFaceClassifier:
    def __init__(
        self,
        api_key: Optional[str],
        primary_model: str = settings.hf_primary_model,
        fallback_model: str = settings.hf_fallback_model,
        base_url: str = settings.hf_inference_url,
        timeout: float = settings.ai_timeout_sec,
        max_attempts: int = settings.ai_max_attempts,
        retry_delay: float = settings.ai_retry_delay_sec,
        sleep: SleepFunc = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.api_key = api_key
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, s=settings, **kwargs) -> "HuggingFaceClassifier":
        return cls(
            api_key=s.huggingface_api_key,
            primary_model=s.hf_primary_model,
            fallback_model=s.hf_fallback_model,
            base_url=s.hf_inference_url,
            timeout=s.ai_timeout_sec,
            max_attempts=s.ai_max_attempts,
            retry_delay=s.ai_retry_delay_sec,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def models(self) -> dict:
        return {"primary": self.primary_model, "fallback": self.fallback_model}

    async def classify(self, image_bytes: bytes) -> ClassificationResult:
        try:
            self._require_credentials()
        except AdapterConfigurationAbsent as e:
            logger.warning(f"[AI] {e.message} — using synthetic score")
            return self._mock_result("no-credentials")

        for model in (self.primary_model, self.fallback_model):
            logger.info(f"[AI] Analyzing image with {model}...")
            try:
                predictions = await retry_transient(
                    lambda m=model: self._query_model(m, image_bytes),
                    attempts=self.max_attempts,
                    delay=self.retry_delay,
                    sleep=self._sleep,
                    label=f"AI {model}",
                )
            except AdapterTransientError as e:
                logger.warning(f"[AI] {model} exhausted retries: {e.message}")
                continue

            ai_probability, real_probability = interpret_labels(predictions)
            logger.info(
                f"[AI] {model}: ai={ai_probability:.3f}, real={real_probability:.3f}"
            )
            return ClassificationResult(
                ai_probability=ai_probability,
                real_probability=real_probability,
                model_used=model,
            )

        logger.error("[AI] All models exhausted retries — using synthetic score")
        return self._mock_result("retries-exhausted")

    def _require_credentials(self) -> None:
        if not self.configured:
            raise AdapterConfigurationAbsent("Hugging Face API key not configured", step="ai_analysis")

    async def _query_model(self, model: str, image_bytes: bytes) -> list[dict]:
        url = f"{self.base_url}/{model}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/octet-stream",
        }

        try:
            async with http_module.request_session() as session:
                async with session.post(
                    url,
                    data=image_bytes,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status in TRANSIENT_STATUSES:
                        body = await response.text()
                        raise AdapterTransientError(
                            f"{model} returned {response.status}: {body[:200]}", step="ai_analysis"
                        )
                    if response.status != 200:
                        body = await response.text()
                        raise AdapterTerminalError(
                            f"{model} returned {response.status}: {body[:200]}", step="ai_analysis"
                        )
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as e:
                        raise AdapterTerminalError(
                            f"{model} returned a non-JSON body: {e}", step="ai_analysis"
                        )
        except asyncio.TimeoutError:
            raise AdapterTransientError(f"{model} request timed out", step="ai_analysis")
        except aiohttp.ClientError as e:
            raise AdapterTransientError(f"{model} connection error: {e}", step="ai_analysis")

        return _unwrap_predictions(model, payload)

    def _mock_result(self, reason: str) -> ClassificationResult:
        ai_probability = self._rng.random() * MOCK_MAX_AI_PROBABILITY
        return ClassificationResult(
            ai_probability=ai_probability,
            real_probability=1.0 - ai_probability,
            model_used=MOCK_MODEL,
            is_mock=True,
            mock_reason=reason,
        )


def _unwrap_predictions(model: str, payload) -> list[dict]:
    """Accepts [{label, score}, ...] or the batched [[{label, score}, ...]] form."""
    if isinstance(payload, dict):
        raise AdapterTerminalError(
            f"{model} returned an error payload: {payload.get('error', payload)}", step="ai_analysis"
        )
    if not isinstance(payload, list):
        raise AdapterTerminalError(f"{model} returned an unexpected payload", step="ai_analysis")
    if payload and isinstance(payload[0], list):
        payload = payload[0]
    return [p for p in payload if isinstance(p, dict)]
