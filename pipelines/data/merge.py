from __future__ import annotations

import pandas as pd
from loguru import logger

from .keys import add_join_keys
from .schema import MERGED, DropLog

JOIN_KEY = ["state_key", "county_key"]


def ambiguous_keys(demo: pd.DataFrame, votes: pd.DataFrame) -> pd.DataFrame:
    """
    Keys that more than one county name normalises to, on either side
    (e.g. "Baltimore" and "Baltimore city" both become ("maryland", "baltimore")).
    """
    demo_dupes = demo.loc[demo.duplicated(JOIN_KEY, keep=False), JOIN_KEY]
    names = votes[JOIN_KEY + ["state_raw", "county_raw"]].drop_duplicates()
    vote_dupes = names.loc[names.duplicated(JOIN_KEY, keep=False), JOIN_KEY]
    return pd.concat([demo_dupes, vote_dupes]).drop_duplicates().reset_index(drop=True)


def _without(df: pd.DataFrame, keys: pd.DataFrame) -> pd.DataFrame:
    if keys.empty:
        return df
    hit = df[JOIN_KEY].merge(keys, on=JOIN_KEY, how="left", indicator=True)["_merge"].eq("both")
    return df.loc[~hit.to_numpy()]


def _unmatched(left: pd.DataFrame, right: pd.DataFrame) -> pd.DataFrame:
    keys = left[JOIN_KEY].drop_duplicates()
    hit = keys.merge(right[JOIN_KEY].drop_duplicates(), on=JOIN_KEY, how="left", indicator=True)
    return hit.loc[hit["_merge"] == "left_only", JOIN_KEY]


def merge_county_tables(
    demographics: pd.DataFrame,
    top_two: pd.DataFrame,
    drop_log: DropLog | None = None,
) -> pd.DataFrame:
    """
    Inner-join county demographics to top-two tallies on the normalised
    (state, county) key. Every matched county yields one row per top-two
    candidate. Unmatched counties on either side are counted and dropped,
    as are keys that more than one county name collapses to.
    """
    drop_log = drop_log if drop_log is not None else DropLog()

    demo = add_join_keys(demographics).drop(columns=["state", "county"])
    votes = add_join_keys(top_two).rename(columns={"state": "state_raw", "county": "county_raw"})

    ambiguous = ambiguous_keys(demo, votes)
    drop_log.record("merge", "ambiguous county key after normalisation", len(ambiguous))
    if len(ambiguous):
        logger.info(f"[merge] ambiguous keys (first 10): {ambiguous.head(10).values.tolist()}")
        demo = _without(demo, ambiguous)
        votes = _without(votes, ambiguous)

    n_vote_counties = votes[JOIN_KEY].drop_duplicates().shape[0]
    miss_votes = _unmatched(votes, demo)
    miss_demo = _unmatched(demo, votes)
    drop_log.record("merge", "election county without census match", len(miss_votes), total=n_vote_counties)
    drop_log.record("merge", "census county without election match", len(miss_demo), total=len(demo))
    if len(miss_votes):
        logger.info(f"[merge] unmatched election counties (first 10): {miss_votes.head(10).values.tolist()}")

    merged = votes.merge(demo, on=JOIN_KEY, how="inner", validate="many_to_one")
    merged = merged.sort_values(JOIN_KEY + ["rank"]).reset_index(drop=True)

    front = ["state_key", "county_key", "state_raw", "county_raw", "fips", "candidate",
             "votes", "rank", "top_two_votes", "share"]
    front = [c for c in front if c in merged.columns]
    merged = merged[front + [c for c in merged.columns if c not in front]]

    logger.info(f"[merge] {len(merged)} rows across {merged[JOIN_KEY].drop_duplicates().shape[0]} counties")
    return MERGED.validate(merged)
