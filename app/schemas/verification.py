from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase keys; Python code uses snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AnalysisDetail(CamelModel):
    ai_probability: float = Field(ge=0.0, le=1.0)
    real_probability: float = Field(ge=0.0, le=1.0)
    model_used: str
    is_mock: bool = False


class BlockchainProof(CamelModel):
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    verification_id: Optional[int] = None
    is_mock: bool = False
    explorer_url: Optional[str] = None
    error: Optional[str] = None


class VerificationRecord(CamelModel):
    """One completed verification. Immutable once created."""
    success: bool = True
    id: str
    source: Literal["upload", "hash"] = "upload"
    content_hash: str
    original_filename: Optional[str] = None
    declared_type: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    trust_score: int = Field(ge=0, le=100)
    confidence: Optional[int] = Field(None, ge=0, le=100)
    is_ai_generated: Optional[bool] = Field(None, alias="isAIGenerated")
    status: Literal["verified", "suspicious", "fake"]
    analysis: Optional[AnalysisDetail] = None
    metadata_cid: str
    metadata_url: Optional[str] = None
    metadata_is_mock: bool = False
    blockchain_proof: BlockchainProof
    timestamp: str


class HistoryResponse(BaseModel):
    count: int
    returned: int
    verifications: list[VerificationRecord]


class FileTypeInfo(BaseModel):
    mime: str
    ext: str


class UploadResponse(CamelModel):
    success: bool = True
    content_hash: str
    file_type: FileTypeInfo
    original_name: Optional[str] = None
    size: int

