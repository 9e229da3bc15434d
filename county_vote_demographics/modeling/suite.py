from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
from loguru import logger

from .clustering import ClusterResult, fit_clusters
from .config import AnalysisParams, ModelParams
from .features import build_county_frame
from .regression import LinearShareResult, LogisticWinnerResult, fit_linear_share, fit_logistic_winner
from .trees import BoostResult, ForestResult, fit_boosted_trees, fit_random_forest


@dataclass
class ModelResults:
    candidate: str
    county: pd.DataFrame
    linear: LinearShareResult
    logistic: LogisticWinnerResult
    forest: ForestResult
    boost: BoostResult
    clusters: ClusterResult


def fit_all_models(
    merged: pd.DataFrame,
    params: ModelParams = ModelParams(),
    analysis: AnalysisParams = AnalysisParams(),
) -> ModelResults:
    """Fit every model on the merged county table. Each fitter is independent."""
    county = build_county_frame(merged, analysis.candidate)
    logger.info(f"[models] {len(county)} counties, candidate={analysis.candidate!r}, seed={params.random_seed}")

    return ModelResults(
        candidate=analysis.candidate,
        county=county,
        linear=fit_linear_share(county, params, analysis),
        logistic=fit_logistic_winner(county, params, analysis),
        forest=fit_random_forest(county, params),
        boost=fit_boosted_trees(county, params, analysis),
        clusters=fit_clusters(county, params),
    )
