"""
Trust scoring policy.

    trust_score = round(real_probability * 100)
    confidence  = round(50 + |ai - real| * 50)
    status      = verified (>= 80) | suspicious (50..79) | fake (< 50)

The same thresholds are used by the ledger contract (app/ledger/contract.py)
so an on-chain status always agrees with the API response.
"""

import math

STATUS_VERIFIED = "verified"
STATUS_SUSPICIOUS = "suspicious"
STATUS_FAKE = "fake"

VERIFIED_THRESHOLD = 80
SUSPICIOUS_THRESHOLD = 50


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; 0.5 must go up here.
    return int(math.floor(value + 0.5))


def trust_score(real_probability: float) -> int:
    return max(0, min(100, round_half_up(real_probability * 100)))


def confidence(ai_probability: float, real_probability: float) -> int:
    return max(0, min(100, round_half_up(50 + abs(ai_probability - real_probability) * 50)))


def status_for_score(score: float) -> str:
    if score >= VERIFIED_THRESHOLD:
        return STATUS_VERIFIED
    if score >= SUSPICIOUS_THRESHOLD:
        return STATUS_SUSPICIOUS
    return STATUS_FAKE


def is_ai_generated(ai_probability: float, real_probability: float) -> bool:
    return ai_probability > real_probability
