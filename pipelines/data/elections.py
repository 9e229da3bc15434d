from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
from loguru import logger

from .io import stdcols
from .schema import ELECTION_TALLY, TOP_TWO_TALLY, DropLog

# fips value reserved for nation-wide tallies
NATIONAL_FIPS = "US"

COUNTY_KEY = ["state", "county"]


@dataclass(frozen=True)
class ElectionPartitions:
    federal: pd.DataFrame
    state: pd.DataFrame
    county: pd.DataFrame


def load_election_tallies(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate raw tallies: fips, state, county (blank for state totals),
    candidate, votes.
    """
    out = ELECTION_TALLY.validate(stdcols(df))
    out["fips"] = out["fips"].str.replace(r"\.0$", "", regex=True)
    return out


def partition_tallies(df: pd.DataFrame) -> ElectionPartitions:
    """Split tallies by geographic granularity of the fips/county fields."""
    is_federal = (df["fips"].str.upper() == NATIONAL_FIPS).fillna(False).astype(bool)
    is_state = ~is_federal & df["county"].isna()
    is_county = ~is_federal & ~is_state

    parts = ElectionPartitions(
        federal=df.loc[is_federal].reset_index(drop=True),
        state=df.loc[is_state].reset_index(drop=True),
        county=df.loc[is_county].reset_index(drop=True),
    )
    logger.info(
        f"[elections] partitioned {len(df)} rows: federal={len(parts.federal)} "
        f"state={len(parts.state)} county={len(parts.county)}"
    )
    return parts


def national_totals(federal: pd.DataFrame) -> pd.DataFrame:
    """Candidate totals and nation-wide vote share, largest first."""
    out = federal.groupby("candidate", as_index=False, observed=True)["votes"].sum()
    total = out["votes"].sum()
    out["share"] = out["votes"] / total if total > 0 else float("nan")
    return out.sort_values(["votes", "candidate"], ascending=[False, True]).reset_index(drop=True)


def top_two_by_county(county: pd.DataFrame, drop_log: DropLog | None = None) -> pd.DataFrame:
    """
    Keep the two largest vote-getters per (state, county).

    Equal vote counts are ordered by candidate name ascending so the
    reduction is deterministic. `share` is votes / (sum of the top two).
    Counties with fewer than two candidates or no top-two votes are dropped.
    """
    drop_log = drop_log if drop_log is not None else DropLog()

    no_state = county["state"].isna()
    drop_log.record("elections", "county row without state", int(no_state.sum()), total=len(county))
    county = county.loc[~no_state]

    # Duplicate (county, candidate) rows are summed before ranking
    tallies = county.groupby(COUNTY_KEY + ["candidate"], as_index=False, observed=True).agg(
        votes=("votes", "sum"),
        fips=("fips", "first"),
    )
    n_counties = tallies.groupby(COUNTY_KEY, observed=True).ngroups

    ranked = tallies.sort_values(COUNTY_KEY + ["votes", "candidate"], ascending=[True, True, False, True])
    ranked["rank"] = ranked.groupby(COUNTY_KEY, observed=True).cumcount() + 1
    top = ranked.loc[ranked["rank"] <= 2].copy()

    n_cand = top.groupby(COUNTY_KEY, observed=True)["candidate"].transform("size")
    single = n_cand < 2
    drop_log.record(
        "elections", "county with a single candidate",
        top.loc[single].groupby(COUNTY_KEY, observed=True).ngroups, total=n_counties,
    )
    top = top.loc[~single]

    top["top_two_votes"] = top.groupby(COUNTY_KEY, observed=True)["votes"].transform("sum")
    empty = top["top_two_votes"] <= 0
    drop_log.record(
        "elections", "county with zero top-two votes",
        top.loc[empty].groupby(COUNTY_KEY, observed=True).ngroups, total=n_counties,
    )
    top = top.loc[~empty].copy()

    top["share"] = top["votes"] / top["top_two_votes"]
    top["rank"] = top["rank"].astype("int64")
    cols = ["fips", "state", "county", "candidate", "votes", "rank", "top_two_votes", "share"]
    return TOP_TWO_TALLY.validate(top[cols].reset_index(drop=True))


def reduce_elections(raw: pd.DataFrame, drop_log: DropLog | None = None) -> tuple[pd.DataFrame, ElectionPartitions]:
    """Validate, partition, and reduce county tallies to the top two candidates."""
    drop_log = drop_log if drop_log is not None else DropLog()
    tallies = load_election_tallies(raw)

    no_votes = tallies["votes"].isna() | tallies["candidate"].isna()
    drop_log.record("elections", "missing candidate or votes", int(no_votes.sum()), total=len(tallies))
    tallies = tallies.loc[~no_votes]

    parts = partition_tallies(tallies)
    top = top_two_by_county(parts.county, drop_log=drop_log)
    logger.info(f"[elections] top-two rows: {len(top)} ({top.groupby(COUNTY_KEY).ngroups} counties)")
    return top, parts
