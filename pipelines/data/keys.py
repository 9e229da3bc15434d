from __future__ import annotations

import re

import pandas as pd

STATE_NAMES = {
    "AL": "alabama", "AK": "alaska", "AZ": "arizona", "AR": "arkansas",
    "CA": "california", "CO": "colorado", "CT": "connecticut", "DE": "delaware",
    "DC": "district of columbia", "FL": "florida", "GA": "georgia", "HI": "hawaii",
    "ID": "idaho", "IL": "illinois", "IN": "indiana", "IA": "iowa",
    "KS": "kansas", "KY": "kentucky", "LA": "louisiana", "ME": "maine",
    "MD": "maryland", "MA": "massachusetts", "MI": "michigan", "MN": "minnesota",
    "MS": "mississippi", "MO": "missouri", "MT": "montana", "NE": "nebraska",
    "NV": "nevada", "NH": "new hampshire", "NJ": "new jersey", "NM": "new mexico",
    "NY": "new york", "NC": "north carolina", "ND": "north dakota", "OH": "ohio",
    "OK": "oklahoma", "OR": "oregon", "PA": "pennsylvania", "RI": "rhode island",
    "SC": "south carolina", "SD": "south dakota", "TN": "tennessee", "TX": "texas",
    "UT": "utah", "VT": "vermont", "VA": "virginia", "WA": "washington",
    "WV": "west virginia", "WI": "wisconsin", "WY": "wyoming", "PR": "puerto rico",
}

# Trailing words stripped from county names before joining. Variants outside
# this list (e.g. "borough", "census area") are left as-is and will not match.
COUNTY_SUFFIXES = ("county", "columbia", "city", "parish")

_SUFFIX_RE = re.compile(r"(?:\s+(?:" + "|".join(COUNTY_SUFFIXES) + r"))+$")


def normalize_state(s: pd.Series) -> pd.Series:
    """Postal abbreviations -> full lowercase names; full names are lowercased."""
    raw = s.astype("string").str.strip()
    abbrev = raw.str.upper().map(STATE_NAMES)
    return abbrev.fillna(raw.str.lower()).astype("string")


def normalize_county(s: pd.Series) -> pd.Series:
    x = s.astype("string").str.strip().str.lower()
    x = x.str.replace(r"\s+", " ", regex=True)
    return x.str.replace(_SUFFIX_RE, "", regex=True).str.strip()


def add_join_keys(df: pd.DataFrame, state_col: str = "state", county_col: str = "county") -> pd.DataFrame:
    out = df.copy()
    out["state_key"] = normalize_state(out[state_col])
    out["county_key"] = normalize_county(out[county_col])
    return out
