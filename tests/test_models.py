from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from county_vote_demographics.modeling.clustering import (
    cluster_win_rates,
    fit_clusters,
    inertia_sweep,
    standardize,
    suggest_elbow,
    svd_components,
)
from county_vote_demographics.modeling.config import ModelParams
from county_vote_demographics.modeling.features import design_matrix, predictor_columns
from county_vote_demographics.modeling.trees import fit_boosted_trees, fit_random_forest, select_tree_count

FAST = ModelParams(boost_max_trees=30, importance_repeats=3)


def test_random_forest_importance_covers_every_predictor(county_frame: pd.DataFrame) -> None:
    res = fit_random_forest(county_frame, FAST)

    assert len(res.importance) == len(res.predictors)
    assert set(res.importance["variable"]) == set(res.predictors)
    assert res.importance["mean_decrease_impurity"].sum() == pytest.approx(1.0)
    assert 0.0 <= res.metrics["test_error"] <= 1.0
    assert res.model.max_features == 5


def test_boosted_trees_pick_a_tree_count_by_cv(county_frame: pd.DataFrame) -> None:
    res = fit_boosted_trees(county_frame, FAST)

    assert 1 <= res.n_trees <= FAST.boost_max_trees
    assert len(res.cv_loss) == FAST.boost_max_trees
    assert res.metrics["cv_log_loss"] == pytest.approx(res.cv_loss["cv_log_loss"].min())
    assert 0.0 <= res.metrics["test_error"] <= 1.0
    assert res.influence["relative_influence"].sum() == pytest.approx(100.0)


def test_select_tree_count_prefers_fewer_trees_on_noise() -> None:
    rng = np.random.default_rng(0)
    X = rng.normal(size=(80, 3))
    y = np.tile([0, 1], 40)

    best, cv = select_tree_count(X, y, ModelParams(boost_max_trees=40))

    assert best == int(cv["cv_log_loss"].idxmin()) + 1
    assert best < 40


def test_svd_components_shapes_and_ratio(county_frame: pd.DataFrame) -> None:
    Z = standardize(design_matrix(county_frame, predictor_columns(county_frame)))
    scores, ratio = svd_components(Z, 2)

    assert scores.shape == (len(county_frame), 2)
    assert ratio.sum() == pytest.approx(1.0)
    assert ratio[0] >= ratio[1]
    assert np.allclose(Z.mean(axis=0), 0.0)


def test_inertia_never_rises_with_k(county_frame: pd.DataFrame) -> None:
    Z = standardize(design_matrix(county_frame, predictor_columns(county_frame)))
    sweep = inertia_sweep(Z, range(2, 21), restarts=5, seed=1)

    assert sweep["k"].tolist() == list(range(2, 21))
    inertia = sweep["inertia"].to_numpy()
    assert np.all(np.diff(inertia) <= 1e-6 * inertia[:-1])


def test_inertia_sweep_stops_at_row_count() -> None:
    Z = np.arange(8, dtype=float).reshape(4, 2)
    sweep = inertia_sweep(Z, range(2, 7))
    assert sweep["k"].tolist() == [2, 3, 4]
    assert sweep["inertia"].iloc[-1] == pytest.approx(0.0)


def test_suggest_elbow() -> None:
    sweep = pd.DataFrame({"k": range(1, 8), "inertia": [100.0, 30.0, 12.0, 10.0, 9.0, 8.5, 8.0]})
    assert suggest_elbow(sweep) == 3
    assert suggest_elbow(sweep.head(2)) is None


def test_cluster_win_rates() -> None:
    county = pd.DataFrame({"won": [1, 0, 1, 1, 0]})
    out = cluster_win_rates(county, np.array([0, 0, 1, 1, 2]))

    assert out["n_counties"].tolist() == [2, 2, 1]
    assert out["win_rate"].tolist() == [0.5, 1.0, 0.0]


def test_fit_clusters_summary(county_frame: pd.DataFrame) -> None:
    res = fit_clusters(county_frame, ModelParams(sweep_max_k=8))

    assert len(res.summary) == 3
    assert res.summary["n_counties"].sum() == len(county_frame)
    assert res.summary["win_rate"].between(0, 1).all()
    assert {"pc1", "pc2", "cluster"} <= set(res.svd_scores.columns)
    assert len(res.sweep) == 7
