"""
Pinata integration — verification metadata pinned to IPFS.

`pin_json` never raises: missing credentials or any remote failure produce a
deterministic-looking mock CID (prefixed `mock-`) so the pipeline can carry on.
Mock CIDs are not retrievable.
"""

import asyncio
import base64
import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from app.config import settings
from app.integrations import http_client as http_module

logger = logging.getLogger(__name__)

APP_NAME = "DeepTrust"
METADATA_VERSION = "1.0.0"
MOCK_PREFIX = "mock-"


@dataclass
class PinResult:
    cid: str
    url: str
    size: int
    timestamp: str
    is_mock: bool = False
    mock_reason: Optional[str] = None


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _compact_json(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), default=str)


def generate_mock_cid(data: Any) -> str:
    """`mock-Qm` + alphanumeric base64 of the first 32 chars of the JSON, max 44 chars."""
    head = _compact_json(data)[:32]
    encoded = base64.b64encode(head.encode("utf-8")).decode("ascii")
    return MOCK_PREFIX + "Qm" + re.sub(r"[^a-zA-Z0-9]", "", encoded)[:44]


class PinataClient:
    def __init__(
        self,
        api_key: Optional[str],
        secret_key: Optional[str],
        api_url: str = settings.pinata_api_url,
        gateway: str = settings.ipfs_gateway,
        timeout: float = settings.pinata_timeout_sec,
    ):
        self.api_key = api_key
        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self.gateway = gateway
        self.timeout = timeout

    @classmethod
    def from_settings(cls, s=settings) -> "PinataClient":
        return cls(
            api_key=s.pinata_api_key,
            secret_key=s.pinata_secret_key,
            api_url=s.pinata_api_url,
            gateway=s.ipfs_gateway,
            timeout=s.pinata_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.secret_key)

    def mock_result(self, data: Any, reason: str = "no-credentials") -> PinResult:
        cid = generate_mock_cid(data)
        return PinResult(
            cid=cid,
            url=f"{self.gateway}{cid}",
            size=len(_compact_json(data)),
            timestamp=_utcnow_iso(),
            is_mock=True,
            mock_reason=reason,
        )

    async def pin_json(self, metadata: dict, name: str = "deeptrust-verification") -> PinResult:
        if not self.configured:
            logger.info("[IPFS] Using mock CID (no Pinata credentials)")
            return self.mock_result(metadata)

        wrapped = {
            "deeptrust": {
                "version": METADATA_VERSION,
                "type": "verification-metadata",
                "timestamp": _utcnow_iso(),
            },
            **metadata,
        }
        body = {
            "pinataContent": wrapped,
            "pinataMetadata": {
                "name": f"{name}_{int(time.time() * 1000)}",
                "keyvalues": {"app": APP_NAME, "type": "verification"},
            },
        }
        headers = {
            "pinata_api_key": self.api_key,
            "pinata_secret_api_key": self.secret_key,
        }

        logger.info(f"[IPFS] Uploading metadata: {name}")
        try:
            async with http_module.request_session() as session:
                async with session.post(
                    f"{self.api_url}/pinning/pinJSONToIPFS",
                    data=_compact_json(body),
                    headers={**headers, "Content-Type": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        text = await response.text()
                        raise RuntimeError(f"Pinata returned {response.status}: {text[:200]}")
                    result = await response.json(content_type=None)

            if not isinstance(result, dict):
                raise RuntimeError(f"Pinata returned an unexpected payload: {str(result)[:200]}")
            cid = result.get("IpfsHash")
            if not cid:
                raise RuntimeError("Pinata did not return a CID")
            size = int(result.get("PinSize") or 0)
        except (aiohttp.ClientError, asyncio.TimeoutError, RuntimeError, TypeError, ValueError) as e:
            logger.error(f"[IPFS] Upload failed: {e}")
            logger.info("[IPFS] Falling back to mock CID")
            return self.mock_result(metadata, reason=str(e) or type(e).__name__)

        logger.info(f"[IPFS] Metadata uploaded: {cid}")
        return PinResult(
            cid=cid,
            url=f"{self.gateway}{cid}",
            size=size,
            timestamp=_utcnow_iso(),
        )

    async def get_content(self, cid: str) -> Optional[Any]:
        """Fetch pinned content through the gateway. None for mock CIDs or on error."""
        if not cid or cid.startswith(MOCK_PREFIX):
            logger.info("[IPFS] Cannot retrieve mock CID")
            return None

        try:
            async with http_module.request_session() as session:
                async with session.get(
                    f"{self.gateway}{cid}",
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        logger.error(f"[IPFS] Fetch failed for {cid}: HTTP {response.status}")
                        return None
                    if "application/json" in response.headers.get("Content-Type", ""):
                        return await response.json(content_type=None)
                    return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[IPFS] Fetch failed for {cid}: {e}")
            return None
