"""
In-process model of the DeepTrustVerification ledger contract.

Mirrors the on-chain state transitions exactly: an append-only list of
entries with sequential ids starting at 1, a content-hash → ids history
mapping, an owner plus a set of authorized verifiers, and an event log.
Any rejected call raises LedgerRevert and leaves state untouched.

The chain adapter (app/integrations/chain.py) decodes on-chain tuples into
the same `LedgerEntry` type, so both sides share one status encoding.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable

from app.detection.scoring import (
    STATUS_FAKE,
    STATUS_SUSPICIOUS,
    STATUS_VERIFIED,
    status_for_score,
)

logger = logging.getLogger(__name__)

MAX_TRUST_SCORE = 100


class LedgerRevert(Exception):
    """A contract call that the ledger refused."""


class LedgerStatus(IntEnum):
    VERIFIED = 0
    SUSPICIOUS = 1
    FAKE = 2

    @classmethod
    def from_score(cls, score: int) -> "LedgerStatus":
        return _TIER_TO_STATUS[status_for_score(score)]

    @property
    def tier(self) -> str:
        return _STATUS_TO_TIER[self]


_TIER_TO_STATUS = {
    STATUS_VERIFIED: LedgerStatus.VERIFIED,
    STATUS_SUSPICIOUS: LedgerStatus.SUSPICIOUS,
    STATUS_FAKE: LedgerStatus.FAKE,
}
_STATUS_TO_TIER = {v: k for k, v in _TIER_TO_STATUS.items()}


@dataclass(frozen=True)
class LedgerEntry:
    id: int
    content_hash: str
    trust_score: int
    metadata_hash: str
    timestamp: int
    status: LedgerStatus
    verifier: str

    def to_dict(self) -> dict:
        return {
            "verificationId": self.id,
            "contentHash": self.content_hash,
            "trustScore": self.trust_score,
            "metadataCid": self.metadata_hash,
            "timestamp": self.timestamp,
            "status": self.status.tier,
            "verifier": self.verifier,
        }


@dataclass(frozen=True)
class LedgerEvent:
    name: str
    args: dict


@dataclass
class VerificationLedger:
    owner: str
    clock: Callable[[], float] = time.time
    _entries: list[LedgerEntry] = field(default_factory=list)
    _history: dict[str, list[int]] = field(default_factory=dict)
    _verifiers: set[str] = field(default_factory=set)
    events: list[LedgerEvent] = field(default_factory=list)

    # ---- access control -------------------------------------------------

    def is_authorized(self, address: str) -> bool:
        return address == self.owner or address in self._verifiers

    def _only_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise LedgerRevert("Only owner can call this function")

    def add_verifier(self, sender: str, verifier: str) -> None:
        self._only_owner(sender)
        self._verifiers.add(verifier)
        self.events.append(LedgerEvent("VerifierAdded", {"verifier": verifier}))

    def remove_verifier(self, sender: str, verifier: str) -> None:
        self._only_owner(sender)
        self._verifiers.discard(verifier)
        self.events.append(LedgerEvent("VerifierRemoved", {"verifier": verifier}))

    # ---- writes ---------------------------------------------------------

    def store_verification(
        self, sender: str, content_hash: str, trust_score: int, metadata_hash: str
    ) -> int:
        if not self.is_authorized(sender):
            raise LedgerRevert("Not authorized verifier")
        if trust_score < 0 or trust_score > MAX_TRUST_SCORE:
            raise LedgerRevert("Trust score must be 0-100")

        entry = LedgerEntry(
            id=len(self._entries) + 1,
            content_hash=content_hash,
            trust_score=int(trust_score),
            metadata_hash=metadata_hash,
            timestamp=int(self.clock()),
            status=LedgerStatus.from_score(trust_score),
            verifier=sender,
        )
        self._entries.append(entry)
        self._history.setdefault(content_hash, []).append(entry.id)
        self.events.append(
            LedgerEvent(
                "VerificationAnchored",
                {
                    "id": entry.id,
                    "contentHash": content_hash,
                    "trustScore": entry.trust_score,
                    "status": int(entry.status),
                    "timestamp": entry.timestamp,
                },
            )
        )
        logger.debug(f"[LEDGER] Stored #{entry.id} for {content_hash[:10]}... by {sender}")
        return entry.id

    # ---- reads ----------------------------------------------------------

    def get_verification(self, verification_id: int) -> LedgerEntry:
        if verification_id < 1 or verification_id > len(self._entries):
            raise LedgerRevert("Verification does not exist")
        return self._entries[verification_id - 1]

    def get_latest_verification(self, content_hash: str) -> LedgerEntry:
        ids = self._history.get(content_hash)
        if not ids:
            raise LedgerRevert("No verification found for this content")
        return self._entries[ids[-1] - 1]

    def get_content_history(self, content_hash: str) -> list[int]:
        return list(self._history.get(content_hash, []))

    def get_verification_count(self) -> int:
        return len(self._entries)
