from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from county_vote_demographics.modeling.config import AnalysisParams, ModelParams
from county_vote_demographics.modeling.regression import fit_linear_share, fit_logistic_winner


def test_linear_share_fit_reports_metrics(county_frame: pd.DataFrame) -> None:
    res = fit_linear_share(county_frame)

    m = res.metrics
    assert m["n_train"] + m["n_test"] == county_frame["share"].notna().sum()
    assert 0.0 <= m["r2"] <= 1.0
    assert m["rmse_test"] > 0.0
    assert m["test_wins"]["n"] == m["n_test"]
    assert res.coefficients["term"].iloc[0] == "const"
    assert set(res.predictors) <= set(res.coefficients["term"])
    assert len(res.test_predictions) == m["n_test"]


def test_linear_share_picks_up_the_white_share_signal(county_frame: pd.DataFrame) -> None:
    res = fit_linear_share(county_frame)
    coef = res.coefficients.set_index("term")["estimate"]
    # Generated shares rise with white share and fall with income
    assert coef["income"] < 0


def test_same_seed_same_fit(county_frame: pd.DataFrame) -> None:
    a = fit_linear_share(county_frame, ModelParams(random_seed=3))
    b = fit_linear_share(county_frame, ModelParams(random_seed=3))
    c = fit_linear_share(county_frame, ModelParams(random_seed=4))

    assert a.metrics["rmse_test"] == b.metrics["rmse_test"]
    assert np.allclose(a.coefficients["estimate"], b.coefficients["estimate"])
    assert a.metrics["rmse_test"] != c.metrics["rmse_test"]


def test_counties_without_a_share_are_left_out(county_frame: pd.DataFrame) -> None:
    frame = county_frame.copy()
    frame.loc[:9, "share"] = np.nan

    res = fit_linear_share(frame)

    assert res.metrics["n_train"] + res.metrics["n_test"] == len(frame) - 10


def test_logistic_winner_reports_both_thresholds(county_frame: pd.DataFrame) -> None:
    res = fit_logistic_winner(county_frame, ModelParams(), AnalysisParams())

    m = res.metrics
    assert m["at_default"]["threshold"] == 0.5
    assert m["at_optimal"]["threshold"] == pytest.approx(res.threshold_opt)
    assert 0.0 <= res.threshold_opt <= 1.0
    for key in ("at_default", "at_optimal"):
        assert 0.0 <= m[key]["error_rate"] <= 1.0
    assert res.coefficients["term"].iloc[0] == "intercept"
    assert len(res.test_probabilities) == m["n_test"]


def test_logistic_rejects_single_class(county_frame: pd.DataFrame) -> None:
    with pytest.raises(ValueError, match="single class"):
        fit_logistic_winner(county_frame.assign(won=1))
