from __future__ import annotations

from dataclasses import replace
from typing import Sequence

import pandas as pd
from loguru import logger

from .io import stdcols
from .schema import CENSUS_TRACT, COUNTY_DEMOGRAPHICS, DropLog, SchemaError

COUNTY_KEY = ["state", "county"]

# Raw counts re-expressed as a percentage of tract population
PERCENT_OF_POP = ("men", "women", "employed", "citizen")

# Race/ethnicity percentages folded into a single minority measure
MINORITY_PARTS = ("hispanic", "black", "native", "asian", "pacific")

DEFAULT_IRRELEVANT = ("walk", "publicwork", "construction")

_TRACT_ID_ALIASES = ["censustract", "tractid", "censusid", "tract_id", "geoid", "tract"]


def pick_tract_id_col(df: pd.DataFrame):
    cols = [c.lower() for c in df.columns]
    for cand in _TRACT_ID_ALIASES:
        if cand in cols:
            return df.columns[cols.index(cand)]
    return None


def unify_census_schema(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardise column names and make sure the tract identifier is called
    `censustract` (ACS exports use CensusTract, TractId or CensusId depending
    on the vintage).
    """
    out = stdcols(df)
    if "censustract" not in out.columns:
        alias = pick_tract_id_col(out)
        if alias is None:
            raise SchemaError(
                "census_tract missing a tract identifier. "
                f"Expected one of {_TRACT_ID_ALIASES}; got {out.columns.tolist()}"
            )
        out = out.rename(columns={alias: "censustract"})
    out["censustract"] = out["censustract"].astype("string").str.replace(r"\.0$", "", regex=True)
    return out


def measure_columns(df: pd.DataFrame) -> list[str]:
    ids = {"censustract", *COUNTY_KEY}
    return [c for c in df.columns if c not in ids]


def load_census_tracts(df: pd.DataFrame) -> pd.DataFrame:
    """Validate raw tract rows; every non-identifier column must be numeric."""
    df = unify_census_schema(df)
    schema = replace(CENSUS_TRACT, numeric=tuple(measure_columns(df)))
    return schema.validate(df)


def percentages_of_population(df: pd.DataFrame, cols: Sequence[str] = PERCENT_OF_POP) -> pd.DataFrame:
    out = df.copy()
    present = [c for c in cols if c in out.columns]
    for c in present:
        out[c] = out[c] / out["totalpop"] * 100.0
    return out


def collapse_minority(df: pd.DataFrame, parts: Sequence[str] = MINORITY_PARTS) -> pd.DataFrame:
    missing = [c for c in parts if c not in df.columns]
    if missing:
        raise SchemaError(f"census_tract missing race/ethnicity columns needed for minority: {missing}")
    out = df.copy()
    out["minority"] = out[list(parts)].sum(axis=1)
    return out.drop(columns=list(parts))


def drop_margin_of_error(df: pd.DataFrame) -> pd.DataFrame:
    err_cols = [c for c in df.columns if c.endswith("err")]
    return df.drop(columns=err_cols)


def tract_weights(df: pd.DataFrame) -> pd.Series:
    """Each tract's share of its county's population."""
    county_pop = df.groupby(COUNTY_KEY, observed=True)["totalpop"].transform("sum")
    return (df["totalpop"] / county_pop).rename("weight")


def normalize_census(
    raw: pd.DataFrame,
    irrelevant: Sequence[str] = DEFAULT_IRRELEVANT,
    drop_log: DropLog | None = None,
) -> pd.DataFrame:
    """
    Reduce tract-level census rows to one population-weighted row per county.

    `totalpop` in the output is the county population; every other measure
    is the weighted sum of tract values with weights summing to 1 per county.
    Counties whose tracts all have missing measurements do not appear.
    """
    drop_log = drop_log if drop_log is not None else DropLog()
    df = load_census_tracts(raw)
    n0 = len(df)

    complete = df.dropna()
    drop_log.record("census", "missing measurement", n0 - len(complete), total=n0)

    populated = complete.loc[complete["totalpop"] > 0]
    drop_log.record("census", "zero population tract", len(complete) - len(populated), total=n0)

    tracts = percentages_of_population(populated)
    tracts = collapse_minority(tracts)
    tracts = tracts.drop(columns=[c for c in irrelevant if c in tracts.columns])
    tracts = drop_margin_of_error(tracts)

    measures = [c for c in measure_columns(tracts) if c != "totalpop"]
    w = tract_weights(tracts)
    scaled = tracts[measures].mul(w, axis=0)
    scaled[COUNTY_KEY] = tracts[COUNTY_KEY]
    scaled["totalpop"] = tracts["totalpop"]

    county = scaled.groupby(COUNTY_KEY, as_index=False, observed=True)[["totalpop"] + measures].sum()
    county = COUNTY_DEMOGRAPHICS.validate(county)

    logger.info(f"[census] {len(tracts)} tracts -> {len(county)} counties ({len(measures)} measures)")
    return county.reset_index(drop=True)
