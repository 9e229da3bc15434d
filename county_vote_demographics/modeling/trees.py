from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd
from loguru import logger
from scipy.special import expit
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.inspection import permutation_importance
from sklearn.metrics import log_loss
from sklearn.model_selection import StratifiedKFold

from .config import AnalysisParams, Columns, ModelParams
from .features import design_matrix, predictor_columns, split_train_test
from .scoring import confusion_rates, rates_at_threshold

COLS = Columns()


@dataclass
class ForestResult:
    predictors: List[str]
    metrics: Dict[str, Any]
    importance: pd.DataFrame
    model: Any = field(repr=False, default=None)


@dataclass
class BoostResult:
    predictors: List[str]
    n_trees: int
    metrics: Dict[str, Any]
    cv_loss: pd.DataFrame
    influence: pd.DataFrame
    model: Any = field(repr=False, default=None)


def _split_xy(county: pd.DataFrame, params: ModelParams):
    y_all = county[COLS.won].astype(int)
    if y_all.nunique() < 2:
        raise ValueError("Winner label has a single class; nothing to classify.")
    predictors = predictor_columns(county)
    train, test = split_train_test(county, params.test_size, params.random_seed)
    return (
        predictors,
        design_matrix(train, predictors), train[COLS.won].to_numpy(dtype=int),
        design_matrix(test, predictors), test[COLS.won].to_numpy(dtype=int),
    )


def fit_random_forest(county: pd.DataFrame, params: ModelParams = ModelParams()) -> ForestResult:
    predictors, X_tr, y_tr, X_te, y_te = _split_xy(county, params)

    rf = RandomForestClassifier(
        n_estimators=params.forest_trees,
        max_features=min(params.forest_max_features, len(predictors)),
        random_state=params.random_seed,
    )
    rf.fit(X_tr, y_tr)
    y_hat = rf.predict(X_te)

    # Mean decrease in accuracy: permute one predictor at a time on held-out rows
    perm = permutation_importance(
        rf, X_te, y_te,
        scoring="accuracy",
        n_repeats=params.importance_repeats,
        random_state=params.random_seed,
    )
    importance = pd.DataFrame({
        "variable": predictors,
        "mean_decrease_accuracy": perm.importances_mean,
        "mean_decrease_accuracy_sd": perm.importances_std,
        "mean_decrease_impurity": rf.feature_importances_,
    }).sort_values("mean_decrease_accuracy", ascending=False).reset_index(drop=True)

    metrics = {
        "n_train": int(len(y_tr)),
        "n_test": int(len(y_te)),
        "train_error": float(np.mean(rf.predict(X_tr) != y_tr)),
        "test_error": float(np.mean(y_hat != y_te)),
        "test_rates": confusion_rates(y_te, y_hat),
    }
    logger.info(f"[forest] test misclassification={metrics['test_error']:.4f}; "
                f"top variable={importance['variable'].iloc[0]}")
    return ForestResult(predictors, metrics, importance, rf)


def _boosting(n_trees: int, params: ModelParams) -> GradientBoostingClassifier:
    return GradientBoostingClassifier(
        n_estimators=n_trees,
        max_depth=params.boost_depth,
        learning_rate=params.boost_learning_rate,
        random_state=params.random_seed,
    )


def select_tree_count(X: np.ndarray, y: np.ndarray, params: ModelParams = ModelParams()) -> Tuple[int, pd.DataFrame]:
    """
    Cross-validated log-loss for every prefix of the boosted ensemble; the
    tree count with the lowest mean loss wins (ties -> fewer trees).
    """
    folds = StratifiedKFold(n_splits=params.boost_cv_folds, shuffle=True, random_state=params.random_seed)
    losses = np.zeros(params.boost_max_trees)
    for tr, va in folds.split(X, y):
        gb = _boosting(params.boost_max_trees, params).fit(X[tr], y[tr])
        for i, proba in enumerate(gb.staged_predict_proba(X[va])):
            losses[i] += log_loss(y[va], proba[:, 1], labels=[0, 1])
    losses /= params.boost_cv_folds

    best = int(np.argmin(losses)) + 1
    cv = pd.DataFrame({"n_trees": np.arange(1, params.boost_max_trees + 1), "cv_log_loss": losses})
    return best, cv


def fit_boosted_trees(
    county: pd.DataFrame,
    params: ModelParams = ModelParams(),
    analysis: AnalysisParams = AnalysisParams(),
) -> BoostResult:
    predictors, X_tr, y_tr, X_te, y_te = _split_xy(county, params)

    n_trees, cv = select_tree_count(X_tr, y_tr, params)
    gb = _boosting(n_trees, params).fit(X_tr, y_tr)

    # Raw additive score is on the log-odds scale
    prob = expit(gb.decision_function(X_te))
    rates = rates_at_threshold(y_te, prob, analysis.probability_threshold)

    influence = pd.DataFrame({
        "variable": predictors,
        "relative_influence": gb.feature_importances_ * 100.0,
    }).sort_values("relative_influence", ascending=False).reset_index(drop=True)

    metrics = {
        "n_train": int(len(y_tr)),
        "n_test": int(len(y_te)),
        "n_trees": n_trees,
        "cv_log_loss": float(cv["cv_log_loss"].iloc[n_trees - 1]),
        "test_error": rates["error_rate"],
        "test_rates": rates,
    }
    logger.info(f"[boost] n_trees={n_trees} test misclassification={rates['error_rate']:.4f}")
    return BoostResult(predictors, n_trees, metrics, cv, influence, gb)
