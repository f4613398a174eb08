"""
Central application configuration.

Every tunable value lives here as a typed, documented field.
Any field can be overridden at runtime via an environment variable of the
same name (case-insensitive), e.g.:

    MAX_UPLOAD_MB=10 uvicorn app.main:app        # tighter upload cap
    export CONTRACT_ADDRESS=0xabc...              # enable on-chain anchoring

A `.env` file at the project root is loaded automatically.

All external credentials are optional: a missing credential switches the
matching adapter to mock mode instead of failing startup.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,   # CONTRACT_ADDRESS == contract_address
        extra="ignore",         # silently drop unknown env vars
    )

    # ------------------------------------------------------------------ #
    # Uploads & temporary files                                           #
    # ------------------------------------------------------------------ #
    max_upload_mb: int = Field(
        50, description="Max MB accepted for a single upload"
    )
    allowed_mime_types: list[str] = Field(
        ["image/jpeg", "image/png", "image/gif", "image/webp"],
        description="Sniffed media types accepted by the pipeline",
    )
    pil_max_image_pixels: int = Field(
        100_000_000, description="PIL decompression-bomb guard (pixels)"
    )
    upload_dir: str = Field(
        "uploads", description="Directory for hash-named temporary files"
    )
    temp_file_max_age_sec: int = Field(
        3_600, description="1 h — temp files older than this are swept"
    )
    cleanup_interval_sec: int = Field(
        1_800, description="How often the periodic temp-file sweep runs (seconds)"
    )

    # ------------------------------------------------------------------ #
    # AI classification (Hugging Face Inference API)                      #
    # ------------------------------------------------------------------ #
    huggingface_api_key: Optional[str] = Field(
        None, description="Inference API token; absent → synthetic scores"
    )
    hf_inference_url: str = Field(
        "https://api-inference.huggingface.co/models",
        description="Base URL for hosted model inference",
    )
    hf_primary_model: str = Field(
        "umm-maybe/AI-image-detector", description="First model tried"
    )
    hf_fallback_model: str = Field(
        "Organika/sdxl-detector", description="Model tried after primary exhausts retries"
    )
    ai_timeout_sec: float = Field(
        30.0, description="Per-call timeout for classification requests"
    )
    ai_max_attempts: int = Field(
        3, description="Attempts per model on transient errors"
    )
    ai_retry_delay_sec: float = Field(
        1.0, description="Linear back-off unit: attempt N waits N × this"
    )

    # ------------------------------------------------------------------ #
    # Metadata pinning (Pinata / IPFS)                                    #
    # ------------------------------------------------------------------ #
    pinata_api_key: Optional[str] = Field(
        None, description="Pinata API key; absent → mock CIDs"
    )
    pinata_secret_key: Optional[str] = Field(
        None, description="Pinata secret API key"
    )
    pinata_api_url: str = Field(
        "https://api.pinata.cloud", description="Pinata REST base URL"
    )
    ipfs_gateway: str = Field(
        "https://gateway.pinata.cloud/ipfs/", description="Gateway prefix for retrieval URLs"
    )
    pinata_timeout_sec: float = Field(
        30.0, description="Per-call timeout for pinning requests"
    )

    # ------------------------------------------------------------------ #
    # Ledger anchoring (EVM JSON-RPC)                                     #
    # ------------------------------------------------------------------ #
    bdag_rpc_url: str = Field(
        "https://rpc.primordial.bdagscan.com", description="Chain JSON-RPC endpoint"
    )
    private_key: Optional[str] = Field(
        None, description="Signing wallet key; absent → simulated proofs"
    )
    contract_address: Optional[str] = Field(
        None, description="Deployed verification contract; absent → simulated proofs"
    )
    chain_explorer_url: str = Field(
        "https://awakening.bdagscan.com/tx/", description="Explorer prefix for tx links"
    )
    chain_tx_timeout_sec: float = Field(
        60.0, description="Max wait for a transaction receipt"
    )
    chain_max_attempts: int = Field(
        3, description="Attempts for a state-changing ledger call"
    )
    chain_retry_delay_sec: float = Field(
        2.0, description="Linear back-off unit: attempt N waits N × this"
    )

    # ------------------------------------------------------------------ #
    # HTTP surface                                                        #
    # ------------------------------------------------------------------ #
    history_default_limit: int = Field(
        50, description="Records returned by /api/history when no limit is given"
    )
    http_session_timeout_sec: float = Field(
        30.0, description="Total timeout of the shared aiohttp session"
    )

    # ------------------------------------------------------------------ #
    # Derived properties                                                  #
    # ------------------------------------------------------------------ #
    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


# Single shared instance, import this everywhere.
settings = Settings()
