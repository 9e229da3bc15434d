import numpy as np
import pandas as pd
from typing import List, Tuple

from sklearn.model_selection import train_test_split

from .config import Columns

COLS = Columns()


def predictor_columns(frame: pd.DataFrame, cols: Columns = COLS) -> List[str]:
    """Every numeric demographic measure in a merged or county frame."""
    skip = set(cols.non_predictors)
    return [c for c in frame.columns if c not in skip and pd.api.types.is_numeric_dtype(frame[c])]


def build_county_frame(merged: pd.DataFrame, candidate: str, cols: Columns = COLS) -> pd.DataFrame:
    """
    One row per county from the (county, top-two candidate) merged table.

    `share` is the candidate's two-candidate share, NaN where the candidate
    did not finish in that county's top two. `won` is 1 when the candidate
    finished first.
    """
    key = [cols.state_key, cols.county_key]
    if candidate not in set(merged[cols.candidate].dropna()):
        raise ValueError(f"Candidate {candidate!r} does not appear in the merged table.")

    predictors = predictor_columns(merged, cols)
    county = merged.drop_duplicates(key)[key + predictors].reset_index(drop=True)

    mine = merged.loc[merged[cols.candidate] == candidate, key + [cols.share, cols.rank]]
    county = county.merge(mine, on=key, how="left")
    county[cols.won] = (county[cols.rank] == 1).astype("int64")
    county = county.drop(columns=[cols.rank])
    county[cols.share] = county[cols.share].astype("float64")

    if county[predictors].isna().any().any():
        bad = county[predictors].columns[county[predictors].isna().any()].tolist()
        raise ValueError(f"Predictors contain missing values: {bad}")
    return county


def design_matrix(frame: pd.DataFrame, predictors: List[str]) -> np.ndarray:
    return frame[predictors].to_numpy(dtype=float)


def split_train_test(
    frame: pd.DataFrame,
    test_size: float = 0.2,
    seed: int = 1,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    train, test = train_test_split(frame, test_size=test_size, random_state=seed)
    return train.reset_index(drop=True), test.reset_index(drop=True)
