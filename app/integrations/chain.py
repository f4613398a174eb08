"""
EVM ledger integration — anchors verification results on the
DeepTrustVerification contract through web3.

Write path (`anchor`) needs both a wallet key and a contract address; without
them a simulated proof is returned and no network I/O happens. With them, one
`storeVerification` transaction is signed once and sent; building and sending
are retried with bounded linear back-off, but a broadcast transaction is never
rebuilt. Exhaustion, a receipt timeout or a revert raises AdapterTerminalError;
the pipeline decides how to degrade.

Read path (`get_by_hash`, `get_by_id`) only needs the contract address and
returns None when the ledger has no record (the contract reverts).
"""

import asyncio
import logging
import random
import secrets
from dataclasses import dataclass
from typing import Optional

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.logs import DISCARD

from app.config import settings
from app.core.errors import AdapterConfigurationAbsent, AdapterTerminalError, AdapterTransientError
from app.core.retry import SleepFunc, retry_transient
from app.ledger.contract import LedgerEntry, LedgerStatus

logger = logging.getLogger(__name__)

_VERIFICATION_TUPLE = {
    "name": "",
    "type": "tuple",
    "internalType": "struct DeepTrustVerification.Verification",
    "components": [
        {"name": "id", "type": "uint256"},
        {"name": "contentHash", "type": "string"},
        {"name": "trustScore", "type": "uint256"},
        {"name": "aiMetadataHash", "type": "string"},
        {"name": "timestamp", "type": "uint256"},
        {"name": "status", "type": "uint8"},
        {"name": "verifier", "type": "address"},
    ],
}

CONTRACT_ABI = [
    {
        "type": "function",
        "name": "storeVerification",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_contentHash", "type": "string"},
            {"name": "_trustScore", "type": "uint256"},
            {"name": "_aiMetadataHash", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getVerification",
        "stateMutability": "view",
        "inputs": [{"name": "_id", "type": "uint256"}],
        "outputs": [_VERIFICATION_TUPLE],
    },
    {
        "type": "function",
        "name": "getLatestVerification",
        "stateMutability": "view",
        "inputs": [{"name": "_contentHash", "type": "string"}],
        "outputs": [_VERIFICATION_TUPLE],
    },
    {
        "type": "function",
        "name": "getContentHistory",
        "stateMutability": "view",
        "inputs": [{"name": "_contentHash", "type": "string"}],
        "outputs": [{"name": "", "type": "uint256[]"}],
    },
    {
        "type": "function",
        "name": "getVerificationCount",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "addVerifier",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_verifier", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "removeVerifier",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_verifier", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "authorizedVerifiers",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "event",
        "name": "VerificationAnchored",
        "anonymous": False,
        "inputs": [
            {"name": "id", "type": "uint256", "indexed": True},
            {"name": "contentHash", "type": "string", "indexed": True},
            {"name": "trustScore", "type": "uint256", "indexed": False},
            {"name": "status", "type": "uint8", "indexed": False},
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
]


@dataclass
class AnchorResult:
    tx_hash: Optional[str]
    block_number: Optional[int]
    verification_id: Optional[int] = None
    is_mock: bool = False
    explorer_url: Optional[str] = None


def decode_entry(raw) -> LedgerEntry:
    """Decode the Verification struct returned by the contract."""
    return LedgerEntry(
        id=int(raw[0]),
        content_hash=raw[1],
        trust_score=int(raw[2]),
        metadata_hash=raw[3],
        timestamp=int(raw[4]),
        status=LedgerStatus(int(raw[5])),
        verifier=raw[6],
    )


class ChainLedgerClient:
    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str],
        contract_address: Optional[str],
        explorer_url: str = settings.chain_explorer_url,
        tx_timeout: float = settings.chain_tx_timeout_sec,
        max_attempts: int = settings.chain_max_attempts,
        retry_delay: float = settings.chain_retry_delay_sec,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.rpc_url = rpc_url
        self.explorer_url = explorer_url
        self.tx_timeout = tx_timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

        self._w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._contract = None
        self._account = None

        try:
            self._connect(contract_address, private_key)
        except Exception as e:
            logger.error(f"[CHAIN] Invalid chain configuration, using simulated proofs: {e}")
            self._contract = None
            self._account = None

    def _connect(self, contract_address: Optional[str], private_key: Optional[str]) -> None:
        if not contract_address:
            logger.warning("[CHAIN] No CONTRACT_ADDRESS configured, simulated proofs")
            return

        self._contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address), abi=CONTRACT_ABI
        )
        logger.info(f"[CHAIN] Contract address: {contract_address}")
        if private_key:
            self._account = self._w3.eth.account.from_key(private_key)
            logger.info(f"[CHAIN] Wallet connected: {self._account.address}")
        else:
            logger.warning("[CHAIN] No PRIVATE_KEY, read-only mode")

    @classmethod
    def from_settings(cls, s=settings, **kwargs) -> "ChainLedgerClient":
        return cls(
            rpc_url=s.bdag_rpc_url,
            private_key=s.private_key,
            contract_address=s.contract_address,
            explorer_url=s.chain_explorer_url,
            tx_timeout=s.chain_tx_timeout_sec,
            max_attempts=s.chain_max_attempts,
            retry_delay=s.chain_retry_delay_sec,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return self._contract is not None and self._account is not None

    @property
    def address(self) -> Optional[str]:
        return self._account.address if self._account else None

    # ------------------------------------------------------------------ #
    # Write path                                                          #
    # ------------------------------------------------------------------ #

    def mock_result(self) -> AnchorResult:
        return AnchorResult(
            tx_hash="0x" + secrets.token_hex(32),
            block_number=random.randint(1_000_000, 9_999_999),
            is_mock=True,
        )

    async def anchor(self, content_hash: str, trust_score: int, metadata_cid: str) -> AnchorResult:
        try:
            self._require_signer()
        except AdapterConfigurationAbsent as e:
            logger.info(f"[CHAIN] {e.message}, using simulated proof")
            return self.mock_result()

        logger.info(f"[CHAIN] Anchoring verification for {content_hash[:10]}...")
        receipt = await self._transact(
            self._contract.functions.storeVerification(content_hash, int(trust_score), metadata_cid),
            "storeVerification",
        )
        result = self._anchor_result(receipt)
        logger.info(f"[CHAIN] Transaction confirmed in block {result.block_number}: {result.tx_hash}")
        return result

    def _require_signer(self) -> None:
        if not self.configured:
            raise AdapterConfigurationAbsent("Wallet or contract not configured", step="blockchain")

    async def _transact(self, fn, name: str) -> dict:
        """
        Build, sign, send and confirm one contract call.

        Building and sending are retried on transient errors. The transaction
        is signed once, so a resend carries the same nonce and can never land
        as a second entry. Once it is broadcast only its receipt is awaited.
        """
        try:
            signed = await retry_transient(
                lambda: self._prepare(fn, name),
                attempts=self.max_attempts,
                delay=self.retry_delay,
                sleep=self._sleep,
                label=f"CHAIN {name} build",
            )
            tx_hash = await retry_transient(
                lambda: self._broadcast(signed),
                attempts=self.max_attempts,
                delay=self.retry_delay,
                sleep=self._sleep,
                label=f"CHAIN {name} send",
            )
        except AdapterTransientError as e:
            raise AdapterTerminalError(
                f"{name} failed after {self.max_attempts} attempts: {e.message}", step="blockchain"
            )
        return await self._confirm(tx_hash)

    async def _prepare(self, fn, name: str):
        sender = self._account.address
        try:
            tx = await fn.build_transaction({
                "from": sender,
                "nonce": await self._w3.eth.get_transaction_count(sender, "pending"),
                "chainId": await self._w3.eth.chain_id,
            })
        except ContractLogicError as e:
            raise AdapterTerminalError(f"Contract rejected {name}: {e}", step="blockchain")
        except Exception as e:
            raise AdapterTransientError(f"{type(e).__name__}: {e}", step="blockchain")
        return self._account.sign_transaction(tx)

    async def _broadcast(self, signed):
        try:
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise AdapterTransientError(f"{type(e).__name__}: {e}", step="blockchain")
        logger.info(f"[CHAIN] Transaction sent: {_hex(tx_hash)}")
        return tx_hash

    async def _confirm(self, tx_hash) -> dict:
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)
        except TimeExhausted:
            raise AdapterTerminalError(
                f"Transaction {_hex(tx_hash)} not confirmed within {self.tx_timeout}s", step="blockchain"
            )
        except Exception as e:
            raise AdapterTerminalError(
                f"Could not confirm transaction {_hex(tx_hash)}: {e}", step="blockchain"
            )
        if receipt["status"] != 1:
            raise AdapterTerminalError(f"Transaction {_hex(tx_hash)} reverted", step="blockchain")
        return receipt

    def _anchor_result(self, receipt) -> AnchorResult:
        tx_hash = _hex(receipt["transactionHash"])
        try:
            events = self._contract.events.VerificationAnchored().process_receipt(receipt, errors=DISCARD)
            verification_id = int(events[0]["args"]["id"]) if events else None
        except Exception as e:
            logger.warning(f"[CHAIN] Could not decode VerificationAnchored from {tx_hash}: {e}")
            verification_id = None

        return AnchorResult(
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
            verification_id=verification_id,
            explorer_url=f"{self.explorer_url}{tx_hash}",
        )

    # ------------------------------------------------------------------ #
    # Read path                                                           #
    # ------------------------------------------------------------------ #

    async def get_by_hash(self, content_hash: str) -> Optional[LedgerEntry]:
        if self._contract is None:
            return None
        try:
            raw = await self._contract.functions.getLatestVerification(content_hash).call()
        except ContractLogicError:
            return None
        except Exception as e:
            logger.error(f"[CHAIN] Lookup by hash failed: {e}")
            return None
        return decode_entry(raw)

    async def get_by_id(self, verification_id: int) -> Optional[LedgerEntry]:
        if self._contract is None:
            return None
        try:
            raw = await self._contract.functions.getVerification(int(verification_id)).call()
        except ContractLogicError:
            return None
        except Exception as e:
            logger.error(f"[CHAIN] Lookup by id failed: {e}")
            return None
        return decode_entry(raw)

    async def health_check(self) -> dict:
        if self._contract is None:
            return {"healthy": False, "mode": "simulated"}
        try:
            block = await self._w3.eth.block_number
            return {"healthy": True, "blockNumber": int(block), "rpcUrl": self.rpc_url}
        except Exception as e:
            logger.warning(f"[CHAIN] Health check failed: {e}")
            return {"healthy": False, "error": str(e), "rpcUrl": self.rpc_url}

    # ------------------------------------------------------------------ #
    # Administration (owner wallet)                                       #
    # ------------------------------------------------------------------ #

    async def add_verifier(self, verifier: str) -> str:
        self._require_signer()
        receipt = await self._transact(
            self._contract.functions.addVerifier(AsyncWeb3.to_checksum_address(verifier)),
            "addVerifier",
        )
        return _hex(receipt["transactionHash"])

    async def is_verifier(self, verifier: str) -> bool:
        if self._contract is None:
            return False
        return bool(
            await self._contract.functions.authorizedVerifiers(
                AsyncWeb3.to_checksum_address(verifier)
            ).call()
        )


def _hex(value) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return "0x" + bytes(value).hex()
