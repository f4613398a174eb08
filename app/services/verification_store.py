"""
Verification record storage.

`VerificationStore` is the interface the pipeline and routes depend on;
`InMemoryVerificationStore` keeps an append-only list guarded by a lock.
Insertion order is recency order (newest last). Readers always receive
snapshot copies, so a slow reader never holds the lock while iterating.
Everything is lost on restart.
"""

import threading
from typing import Optional

from app.detection.scoring import STATUS_FAKE, STATUS_SUSPICIOUS, STATUS_VERIFIED, round_half_up
from app.schemas.verification import VerificationRecord


class VerificationStore:
    def append(self, record: VerificationRecord) -> None:
        raise NotImplementedError

    def find_by_hash(self, content_hash: str) -> Optional[VerificationRecord]:
        raise NotImplementedError

    def list_recent(self, limit: int) -> list[VerificationRecord]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def stats(self) -> dict:
        raise NotImplementedError


class InMemoryVerificationStore(VerificationStore):
    def __init__(self):
        self._records: list[VerificationRecord] = []
        self._lock = threading.Lock()

    def _snapshot(self) -> list[VerificationRecord]:
        with self._lock:
            return list(self._records)

    def append(self, record: VerificationRecord) -> None:
        with self._lock:
            self._records.append(record)

    def find_by_hash(self, content_hash: str) -> Optional[VerificationRecord]:
        """Newest record for the hash, or None."""
        for record in reversed(self._snapshot()):
            if record.content_hash == content_hash:
                return record
        return None

    def list_recent(self, limit: int) -> list[VerificationRecord]:
        """Newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._snapshot()))[:limit]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def stats(self) -> dict:
        records = self._snapshot()
        total = len(records)
        return {
            "totalVerifications": total,
            "verifiedCount": sum(1 for r in records if r.status == STATUS_VERIFIED),
            "suspiciousCount": sum(1 for r in records if r.status == STATUS_SUSPICIOUS),
            "fakeCount": sum(1 for r in records if r.status == STATUS_FAKE),
            "averageTrustScore": (
                round_half_up(sum(r.trust_score for r in records) / total) if total else 0
            ),
        }
