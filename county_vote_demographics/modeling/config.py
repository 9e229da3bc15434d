from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Columns:
    state_key: str = "state_key"
    county_key: str = "county_key"
    candidate: str = "candidate"
    votes: str = "votes"
    rank: str = "rank"
    share: str = "share"
    won: str = "won"

    # Merged-table columns that are never predictors
    non_predictors: Tuple[str, ...] = (
        "state_key", "county_key", "state_raw", "county_raw", "fips", "candidate",
        "votes", "rank", "top_two_votes", "share", "won",
    )


@dataclass(frozen=True)
class ModelParams:
    random_seed: int = 1
    test_size: float = 0.2

    # Random forest
    forest_trees: int = 100
    forest_max_features: int = 5
    importance_repeats: int = 10

    # Boosted trees
    boost_max_trees: int = 100
    boost_depth: int = 3
    boost_learning_rate: float = 0.1
    boost_cv_folds: int = 5

    # Logistic regression (inverse penalty strength; large means ~unpenalised)
    logistic_c: float = 1e4
    logistic_max_iter: int = 5000

    # K-means
    sweep_min_k: int = 2
    sweep_max_k: int = 20
    n_clusters: int = 3
    kmeans_restarts: int = 5
    svd_components: int = 2


@dataclass(frozen=True)
class AnalysisParams:
    candidate: str = "Donald Trump"
    share_threshold: float = 0.5
    probability_threshold: float = 0.5
