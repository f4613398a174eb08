"""Tests for app/ledger/contract.py — the in-process ledger contract model."""

import pytest

from app.ledger.contract import LedgerRevert, LedgerStatus, VerificationLedger

OWNER = "0xOwner"
VERIFIER = "0xVerifier"
STRANGER = "0xStranger"
HASH_A = "aa" * 32
HASH_B = "bb" * 32


@pytest.fixture
def ledger():
    return VerificationLedger(owner=OWNER, clock=lambda: 1_700_000_000.9)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_owner_can_store_and_ids_start_at_one(ledger):
    assert ledger.store_verification(OWNER, HASH_A, 90, "QmA") == 1
    assert ledger.store_verification(OWNER, HASH_B, 40, "QmB") == 2
    assert ledger.get_verification_count() == 2


def test_stored_entry_fields(ledger):
    vid = ledger.store_verification(OWNER, HASH_A, 65, "QmA")
    entry = ledger.get_verification(vid)
    assert entry.content_hash == HASH_A
    assert entry.trust_score == 65
    assert entry.metadata_hash == "QmA"
    assert entry.timestamp == 1_700_000_000
    assert entry.status is LedgerStatus.SUSPICIOUS
    assert entry.verifier == OWNER


def test_unauthorized_sender_reverts_without_state_change(ledger):
    with pytest.raises(LedgerRevert, match="Not authorized verifier"):
        ledger.store_verification(STRANGER, HASH_A, 90, "QmA")
    assert ledger.get_verification_count() == 0
    assert ledger.events == []


def test_score_above_100_reverts(ledger):
    with pytest.raises(LedgerRevert, match="Trust score must be 0-100"):
        ledger.store_verification(OWNER, HASH_A, 101, "QmA")
    assert ledger.get_verification_count() == 0


def test_store_emits_anchored_event(ledger):
    ledger.store_verification(OWNER, HASH_A, 20, "QmA")
    event = ledger.events[-1]
    assert event.name == "VerificationAnchored"
    assert event.args["id"] == 1
    assert event.args["status"] == int(LedgerStatus.FAKE)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def test_latest_verification_for_hash(ledger):
    ledger.store_verification(OWNER, HASH_A, 30, "Qm1")
    ledger.store_verification(OWNER, HASH_B, 50, "Qm2")
    ledger.store_verification(OWNER, HASH_A, 95, "Qm3")

    latest = ledger.get_latest_verification(HASH_A)
    assert latest.id == 3
    assert latest.trust_score == 95
    assert ledger.get_content_history(HASH_A) == [1, 3]


def test_unknown_hash_reverts(ledger):
    with pytest.raises(LedgerRevert, match="No verification found for this content"):
        ledger.get_latest_verification(HASH_A)
    assert ledger.get_content_history(HASH_A) == []


@pytest.mark.parametrize("vid", [0, 1, 5])
def test_unknown_id_reverts(ledger, vid):
    with pytest.raises(LedgerRevert):
        ledger.get_verification(vid)


def test_history_is_a_copy(ledger):
    ledger.store_verification(OWNER, HASH_A, 90, "Qm1")
    ledger.get_content_history(HASH_A).append(99)
    assert ledger.get_content_history(HASH_A) == [1]


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


def test_added_verifier_can_store(ledger):
    ledger.add_verifier(OWNER, VERIFIER)
    assert ledger.is_authorized(VERIFIER)
    vid = ledger.store_verification(VERIFIER, HASH_A, 80, "QmA")
    assert ledger.get_verification(vid).verifier == VERIFIER


def test_add_verifier_is_idempotent(ledger):
    ledger.add_verifier(OWNER, VERIFIER)
    ledger.add_verifier(OWNER, VERIFIER)
    assert ledger.is_authorized(VERIFIER)


def test_removed_verifier_cannot_store(ledger):
    ledger.add_verifier(OWNER, VERIFIER)
    ledger.remove_verifier(OWNER, VERIFIER)
    with pytest.raises(LedgerRevert):
        ledger.store_verification(VERIFIER, HASH_A, 80, "QmA")


def test_only_owner_manages_verifiers(ledger):
    with pytest.raises(LedgerRevert, match="Only owner can call this function"):
        ledger.add_verifier(STRANGER, STRANGER)
    with pytest.raises(LedgerRevert, match="Only owner can call this function"):
        ledger.remove_verifier(VERIFIER, OWNER)
    assert not ledger.is_authorized(STRANGER)


# ---------------------------------------------------------------------------
# Status encoding
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "score, status, tier",
    [(80, LedgerStatus.VERIFIED, "verified"), (79, LedgerStatus.SUSPICIOUS, "suspicious"),
     (50, LedgerStatus.SUSPICIOUS, "suspicious"), (49, LedgerStatus.FAKE, "fake")],
)
def test_status_from_score(score, status, tier):
    assert LedgerStatus.from_score(score) is status
    assert status.tier == tier


def test_entry_to_dict(ledger):
    ledger.store_verification(OWNER, HASH_A, 85, "QmA")
    assert ledger.get_latest_verification(HASH_A).to_dict() == {
        "verificationId": 1,
        "contentHash": HASH_A,
        "trustScore": 85,
        "metadataCid": "QmA",
        "timestamp": 1_700_000_000,
        "status": "verified",
        "verifier": OWNER,
    }
