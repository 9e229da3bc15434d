from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from .config import AnalysisParams, Columns, ModelParams
from .features import design_matrix, predictor_columns, split_train_test
from .scoring import rates_at_threshold, rmse, roc_table, win_counts, youden_threshold

COLS = Columns()


@dataclass
class LinearShareResult:
    predictors: List[str]
    metrics: Dict[str, Any]
    coefficients: pd.DataFrame
    test_predictions: pd.DataFrame
    model: Any = field(repr=False, default=None)


@dataclass
class LogisticWinnerResult:
    predictors: List[str]
    threshold_opt: float
    metrics: Dict[str, Any]
    coefficients: pd.DataFrame
    roc: pd.DataFrame
    test_probabilities: pd.DataFrame
    model: Any = field(repr=False, default=None)


def _with_const(frame: pd.DataFrame, predictors: List[str]) -> pd.DataFrame:
    return sm.add_constant(frame[predictors].astype(float), has_constant="add")


def fit_linear_share(
    county: pd.DataFrame,
    params: ModelParams = ModelParams(),
    analysis: AnalysisParams = AnalysisParams(),
) -> LinearShareResult:
    """
    OLS of the candidate's two-candidate share on every demographic measure.

    Only counties where the candidate finished in the top two carry a share,
    so the others are left out of the fit.
    """
    rows = county.loc[county[COLS.share].notna()]
    skipped = len(county) - len(rows)
    if skipped:
        logger.warning(f"[linear] {skipped} counties without a share for {analysis.candidate!r} left out")
    if rows.empty:
        raise ValueError(f"No counties carry a share for {analysis.candidate!r}.")

    predictors = predictor_columns(rows)
    train, test = split_train_test(rows, params.test_size, params.random_seed)

    model = sm.OLS(train[COLS.share].astype(float), _with_const(train, predictors)).fit()
    pred_train = model.predict(_with_const(train, predictors))
    pred_test = model.predict(_with_const(test, predictors))

    metrics = {
        "n_train": int(len(train)),
        "n_test": int(len(test)),
        "r2": float(model.rsquared),
        "adj_r2": float(model.rsquared_adj),
        "rmse_train": rmse(train[COLS.share], pred_train),
        "rmse_test": rmse(test[COLS.share], pred_test),
        "test_wins": win_counts(test[COLS.share], pred_test, analysis.share_threshold),
    }

    coefficients = pd.DataFrame({
        "term": model.params.index,
        "estimate": model.params.to_numpy(),
        "std_err": model.bse.to_numpy(),
        "t": model.tvalues.to_numpy(),
        "p_value": model.pvalues.to_numpy(),
    })

    preds = test[[COLS.state_key, COLS.county_key, COLS.share]].copy()
    preds["predicted"] = np.asarray(pred_test, dtype=float)

    logger.info(
        f"[linear] rmse_test={metrics['rmse_test']:.4f} "
        f"wins actual={metrics['test_wins']['actual_wins']} predicted={metrics['test_wins']['predicted_wins']}"
    )
    return LinearShareResult(predictors, metrics, coefficients, preds, model)


def fit_logistic_winner(
    county: pd.DataFrame,
    params: ModelParams = ModelParams(),
    analysis: AnalysisParams = AnalysisParams(),
) -> LogisticWinnerResult:
    """
    Logistic regression for whether the candidate carried the county.

    Rates are reported on the test split at the fixed probability threshold
    and at the threshold maximising Youden's statistic on the training ROC.
    """
    y_all = county[COLS.won].astype(int)
    if y_all.nunique() < 2:
        raise ValueError(f"Winner label for {analysis.candidate!r} has a single class; nothing to classify.")

    predictors = predictor_columns(county)
    train, test = split_train_test(county, params.test_size, params.random_seed)
    X_tr, X_te = design_matrix(train, predictors), design_matrix(test, predictors)
    y_tr, y_te = train[COLS.won].to_numpy(dtype=int), test[COLS.won].to_numpy(dtype=int)

    model = Pipeline([
        ("scaler", StandardScaler()),
        ("model", LogisticRegression(C=params.logistic_c, max_iter=params.logistic_max_iter)),
    ])
    model.fit(X_tr, y_tr)

    p_tr = model.predict_proba(X_tr)[:, 1]
    p_te = model.predict_proba(X_te)[:, 1]
    thr_opt = youden_threshold(y_tr, p_tr)

    both_classes = len(np.unique(y_te)) == 2
    metrics = {
        "n_train": int(len(train)),
        "n_test": int(len(test)),
        "at_default": rates_at_threshold(y_te, p_te, analysis.probability_threshold),
        "at_optimal": rates_at_threshold(y_te, p_te, thr_opt),
        "auc_test": float(roc_auc_score(y_te, p_te)) if both_classes else float("nan"),
    }

    lr = model.named_steps["model"]
    coefficients = pd.DataFrame({
        "term": ["intercept"] + predictors,
        "estimate_standardised": np.concatenate([lr.intercept_, lr.coef_.ravel()]),
    })

    probs = test[[COLS.state_key, COLS.county_key, COLS.won]].copy()
    probs["probability"] = p_te

    logger.info(
        f"[logistic] optimal threshold={thr_opt:.3f} "
        f"error@{analysis.probability_threshold}={metrics['at_default']['error_rate']:.4f} "
        f"error@opt={metrics['at_optimal']['error_rate']:.4f}"
    )
    roc = roc_table(y_te, p_te) if both_classes else pd.DataFrame(columns=["threshold", "fpr", "tpr", "youden"])
    return LogisticWinnerResult(predictors, thr_opt, metrics, coefficients, roc, probs, model)
