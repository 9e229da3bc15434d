from __future__ import annotations

import numpy as np
import pytest

from county_vote_demographics.modeling.config import ModelParams
from county_vote_demographics.modeling.regression import fit_logistic_winner
from county_vote_demographics.modeling.scoring import (
    confusion_rates,
    rates_at_threshold,
    rmse,
    roc_table,
    win_counts,
    youden_threshold,
)


def test_rmse_and_win_counts() -> None:
    assert rmse([0.5, 0.5], [0.4, 0.6]) == pytest.approx(0.1)
    wins = win_counts([0.6, 0.4, 0.7], [0.55, 0.52, 0.3])
    assert wins == {"n": 3, "actual_wins": 2, "predicted_wins": 2, "agree": 1}


def test_confusion_rates() -> None:
    r = confusion_rates([1, 1, 1, 0, 0], [1, 0, 1, 0, 1])

    assert (r["tp"], r["fn"], r["tn"], r["fp"]) == (2, 1, 1, 1)
    assert r["tpr"] == pytest.approx(2 / 3)
    assert r["fnr"] == pytest.approx(1 / 3)
    assert r["fpr"] == pytest.approx(0.5)
    assert r["tnr"] == pytest.approx(0.5)
    assert r["error_rate"] == pytest.approx(0.4)


def test_rates_without_negatives_are_nan() -> None:
    r = confusion_rates([1, 1], [1, 0])
    assert np.isnan(r["fpr"])
    assert r["tpr"] == 0.5


def test_threshold_is_inclusive() -> None:
    r = rates_at_threshold([1, 0], [0.5, 0.2], 0.5)
    assert r["tp"] == 1
    assert r["threshold"] == 0.5


def test_youden_threshold_separates_perfectly_ranked_scores() -> None:
    y = [0, 0, 0, 1, 1]
    prob = [0.1, 0.2, 0.3, 0.7, 0.9]

    thr = youden_threshold(y, prob)

    assert thr == pytest.approx(0.7)
    assert rates_at_threshold(y, prob, thr)["error_rate"] == 0.0
    assert roc_table(y, prob)["youden"].max() == pytest.approx(1.0)


def test_tpr_never_rises_with_the_threshold(county_frame) -> None:
    res = fit_logistic_winner(county_frame, ModelParams())
    probs = res.test_probabilities

    tprs = [
        rates_at_threshold(probs["won"], probs["probability"], t)["tpr"]
        for t in np.linspace(0.0, 1.0, 21)
    ]
    assert all(b <= a for a, b in zip(tprs, tprs[1:]))
    assert tprs[0] == 1.0
