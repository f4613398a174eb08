"""
Stand-ins for the pipeline's adapters.

Each fake records its calls so tests can assert exactly which external
services a run touched.
"""

from typing import Optional

from app.integrations.chain import AnchorResult
from app.integrations.huggingface import ClassificationResult
from app.integrations.pinata import PinResult, generate_mock_cid


class FakeClassifier:
    configured = True
    models = {"primary": "fake/primary", "fallback": "fake/fallback"}

    def __init__(self, ai_probability: float = 0.1, error: Optional[Exception] = None):
        self.ai_probability = ai_probability
        self.error = error
        self.calls = 0

    async def classify(self, image_bytes: bytes) -> ClassificationResult:
        self.calls += 1
        if self.error:
            raise self.error
        return ClassificationResult(
            ai_probability=self.ai_probability,
            real_probability=1.0 - self.ai_probability,
            model_used="fake/primary",
        )


class FakePinner:
    configured = True

    def __init__(self):
        self.pinned: list[tuple[dict, str]] = []

    def mock_result(self, data, reason: str = "no-credentials") -> PinResult:
        cid = generate_mock_cid(data)
        return PinResult(cid=cid, url=f"https://gw/{cid}", size=0, timestamp="", is_mock=True, mock_reason=reason)

    async def pin_json(self, metadata: dict, name: str = "deeptrust-verification") -> PinResult:
        self.pinned.append((metadata, name))
        cid = f"QmFake{len(self.pinned)}"
        return PinResult(cid=cid, url=f"https://gw/{cid}", size=10, timestamp="")

    async def get_content(self, cid: str):
        return {"cid": cid}


class FakeLedger:
    configured = True

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.anchored: list[tuple[str, int, str]] = []

    async def anchor(self, content_hash: str, trust_score: int, metadata_cid: str) -> AnchorResult:
        self.anchored.append((content_hash, trust_score, metadata_cid))
        if self.error:
            raise self.error
        return AnchorResult(
            tx_hash="0x" + "ab" * 32,
            block_number=1234,
            verification_id=len(self.anchored),
            explorer_url="https://explorer/tx/0x" + "ab" * 32,
        )

    async def get_by_hash(self, content_hash: str):
        return None

    async def health_check(self) -> dict:
        return {"healthy": True, "blockNumber": 1234}
