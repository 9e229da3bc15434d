from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

import numpy as np
import pandas as pd
from kneed import KneeLocator
from loguru import logger
from sklearn.cluster import KMeans
from sklearn.preprocessing import StandardScaler

from .config import Columns, ModelParams
from .features import design_matrix, predictor_columns

COLS = Columns()


@dataclass
class ClusterResult:
    predictors: List[str]
    sweep: pd.DataFrame
    elbow_k: Optional[int]
    labels: np.ndarray
    summary: pd.DataFrame
    svd_scores: pd.DataFrame
    explained_variance: np.ndarray
    inertia: float
    model: Any = field(repr=False, default=None)


def standardize(X: np.ndarray) -> np.ndarray:
    """Centre and scale columns to zero mean, unit variance (constant columns stay 0)."""
    return StandardScaler().fit_transform(np.asarray(X, dtype=float))


def svd_components(Z: np.ndarray, n_components: int = 2):
    """
    Leading principal-component scores of an already-centred matrix via SVD.
    Returns (scores, explained variance ratio of every component).
    """
    U, S, _ = np.linalg.svd(Z, full_matrices=False)
    scores = U[:, :n_components] * S[:n_components]
    energy = S ** 2
    ratio = energy / energy.sum() if energy.sum() > 0 else np.zeros_like(energy)
    return scores, ratio


def _farthest_point(Z: np.ndarray, centers: np.ndarray) -> np.ndarray:
    d = ((Z[:, None, :] - centers[None, :, :]) ** 2).sum(axis=2).min(axis=1)
    return Z[int(np.argmax(d))]


def inertia_sweep(
    Z: np.ndarray,
    ks: Iterable[int],
    restarts: int = 5,
    seed: int = 1,
) -> pd.DataFrame:
    """
    Total within-cluster sum of squares for each k.

    Each k also tries a warm start from the previous k's centres plus the
    point farthest from them, and keeps whichever run is lower. Lloyd
    iterations never raise inertia from their starting point, so the curve
    is non-increasing in k.
    """
    rows = []
    prev = None
    n = Z.shape[0]
    for k in ks:
        if k > n:
            logger.warning(f"[kmeans] sweep stops at k={k - 1}: only {n} rows")
            break
        km = KMeans(n_clusters=k, n_init=restarts, random_state=seed).fit(Z)
        if prev is not None and prev.shape[0] == k - 1:
            init = np.vstack([prev, _farthest_point(Z, prev)])
            warm = KMeans(n_clusters=k, init=init, n_init=1, random_state=seed).fit(Z)
            if warm.inertia_ < km.inertia_:
                km = warm
        rows.append({"k": k, "inertia": float(km.inertia_)})
        prev = km.cluster_centers_
    return pd.DataFrame(rows, columns=["k", "inertia"])


def suggest_elbow(sweep: pd.DataFrame) -> Optional[int]:
    if len(sweep) < 3:
        return None
    kneedle = KneeLocator(
        sweep["k"].tolist(),
        sweep["inertia"].tolist(),
        curve="convex",
        direction="decreasing",
    )
    if kneedle.elbow is None:
        logger.warning("[kmeans] no clear elbow in the inertia sweep")
        return None
    return int(kneedle.elbow)


def cluster_win_rates(county: pd.DataFrame, labels: np.ndarray) -> pd.DataFrame:
    """Per cluster: member counties and the fraction won by the candidate."""
    df = pd.DataFrame({"cluster": labels, COLS.won: county[COLS.won].to_numpy()})
    out = df.groupby("cluster", as_index=False).agg(
        n_counties=(COLS.won, "size"),
        n_won=(COLS.won, "sum"),
        win_rate=(COLS.won, "mean"),
    )
    return out


def fit_clusters(county: pd.DataFrame, params: ModelParams = ModelParams()) -> ClusterResult:
    predictors = predictor_columns(county)
    Z = standardize(design_matrix(county, predictors))

    scores, ratio = svd_components(Z, params.svd_components)
    svd = county[[COLS.state_key, COLS.county_key]].copy()
    for i in range(scores.shape[1]):
        svd[f"pc{i + 1}"] = scores[:, i]

    sweep = inertia_sweep(
        Z, range(params.sweep_min_k, params.sweep_max_k + 1),
        restarts=params.kmeans_restarts, seed=params.random_seed,
    )
    elbow = suggest_elbow(sweep)

    km = KMeans(n_clusters=params.n_clusters, n_init=params.kmeans_restarts, random_state=params.random_seed).fit(Z)
    labels = km.labels_
    svd["cluster"] = labels
    summary = cluster_win_rates(county, labels)

    logger.info(f"[kmeans] k={params.n_clusters} inertia={km.inertia_:.2f} elbow suggestion={elbow}")
    return ClusterResult(predictors, sweep, elbow, labels, summary, svd, ratio, float(km.inertia_), km)
