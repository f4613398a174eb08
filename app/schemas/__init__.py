from app.schemas.verification import (
    AnalysisDetail,
    BlockchainProof,
    FileTypeInfo,
    HistoryResponse,
    UploadResponse,
    VerificationRecord,
)

__all__ = [
    "AnalysisDetail",
    "BlockchainProof",
    "FileTypeInfo",
    "HistoryResponse",
    "UploadResponse",
    "VerificationRecord",
]
