"""Tests for app/detection/labels.py — classifier label vocabularies."""

import pytest

from app.core.errors import AdapterTerminalError
from app.detection.labels import interpret_labels


def test_artificial_human_vocabulary():
    ai, real = interpret_labels([
        {"label": "artificial", "score": 0.9},
        {"label": "human", "score": 0.1},
    ])
    assert ai == pytest.approx(0.9)
    assert real == pytest.approx(0.1)


def test_labels_match_case_insensitively():
    ai, real = interpret_labels([
        {"label": "REAL", "score": 0.7},
        {"label": "FAKE", "score": 0.3},
    ])
    assert ai == pytest.approx(0.3)
    assert real == pytest.approx(0.7)


def test_scores_are_normalized_to_sum_one():
    ai, real = interpret_labels([
        {"label": "real", "score": 0.6},
        {"label": "ai", "score": 0.2},
    ])
    assert ai == pytest.approx(0.25)
    assert real == pytest.approx(0.75)
    assert ai + real == pytest.approx(1.0)


def test_first_match_per_polarity_wins():
    ai, real = interpret_labels([
        {"label": "human", "score": 0.6},
        {"label": "artificial", "score": 0.4},
        {"label": "natural", "score": 0.99},
    ])
    assert real == pytest.approx(0.6)
    assert ai == pytest.approx(0.4)


def test_single_ai_label_implies_complement():
    ai, real = interpret_labels([{"label": "artificial", "score": 0.8}])
    assert ai == pytest.approx(0.8)
    assert real == pytest.approx(0.2)


def test_single_real_label_implies_complement():
    ai, real = interpret_labels([{"label": "Real image", "score": 0.35}])
    assert ai == pytest.approx(0.65)
    assert real == pytest.approx(0.35)


def test_unknown_labels_fall_back_to_positional_order():
    ai, real = interpret_labels([
        {"label": "LABEL_0", "score": 0.7},
        {"label": "LABEL_1", "score": 0.3},
    ])
    assert ai == pytest.approx(0.7)
    assert real == pytest.approx(0.3)


def test_zero_scores_split_evenly():
    assert interpret_labels([
        {"label": "artificial", "score": 0.0},
        {"label": "human", "score": 0.0},
    ]) == (0.5, 0.5)


def test_empty_predictions_are_terminal():
    with pytest.raises(AdapterTerminalError) as exc:
        interpret_labels([])
    assert exc.value.step == "ai_analysis"


def test_non_numeric_score_is_terminal():
    with pytest.raises(AdapterTerminalError) as exc:
        interpret_labels([
            {"label": "human", "score": "n/a"},
            {"label": "artificial", "score": 0.2},
        ])
    assert exc.value.step == "ai_analysis"
    assert "human" in exc.value.message


def test_non_numeric_positional_score_is_terminal():
    with pytest.raises(AdapterTerminalError):
        interpret_labels([
            {"label": "LABEL_0", "score": [0.7]},
            {"label": "LABEL_1", "score": 0.3},
        ])
