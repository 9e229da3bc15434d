"""Synthetic census/election inputs shared across tests."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from scipy.special import expit

STATES = [("CA", "California"), ("TX", "Texas"), ("LA", "Louisiana"), ("NY", "New York")]


def make_small_census() -> pd.DataFrame:
    """Four tracts in two counties with easy-to-check numbers."""
    return pd.DataFrame(
        {
            "CensusTract": [1001, 1002, 2001, 2002],
            "State": ["California", "California", "Texas", "Texas"],
            "County": ["Alpha", "Alpha", "Beta", "Beta"],
            "TotalPop": [100, 300, 200, 200],
            "Men": [50, 120, 100, 90],
            "Women": [50, 180, 100, 110],
            "Hispanic": [10.0, 20.0, 30.0, 40.0],
            "White": [82.0, 65.0, 60.0, 50.0],
            "Black": [5.0, 10.0, 5.0, 5.0],
            "Native": [1.0, 0.0, 2.0, 1.0],
            "Asian": [2.0, 4.0, 3.0, 3.0],
            "Pacific": [0.0, 1.0, 0.0, 1.0],
            "Citizen": [80, 240, 150, 140],
            "Income": [40000.0, 60000.0, 50000.0, 30000.0],
            "IncomeErr": [1000.0, 2000.0, 1500.0, 1200.0],
            "Poverty": [10.0, 20.0, 15.0, 25.0],
            "Construction": [5.0, 6.0, 7.0, 8.0],
            "Walk": [1.0, 2.0, 3.0, 4.0],
            "PublicWork": [10.0, 12.0, 14.0, 16.0],
            "Employed": [40, 150, 90, 80],
            "Unemployment": [5.0, 7.0, 9.0, 11.0],
        }
    )


def make_small_elections() -> pd.DataFrame:
    """Three candidates in the two counties, plus state and national rows."""
    rows = [
        ("US", "", "", "Donald Trump", 900),
        ("US", "", "", "Hillary Clinton", 800),
        ("US", "", "", "Gary Johnson", 150),
        ("CA", "CA", None, "Hillary Clinton", 500),
        ("CA", "CA", None, "Donald Trump", 300),
        ("TX", "TX", None, "Donald Trump", 600),
        ("6001", "CA", "Alpha County", "Donald Trump", 300),
        ("6001", "CA", "Alpha County", "Hillary Clinton", 500),
        ("6001", "CA", "Alpha County", "Gary Johnson", 50),
        ("48001", "TX", "Beta County", "Donald Trump", 600),
        ("48001", "TX", "Beta County", "Hillary Clinton", 300),
        ("48001", "TX", "Beta County", "Gary Johnson", 100),
    ]
    return pd.DataFrame(rows, columns=["fips", "state", "county", "candidate", "votes"])


def make_raw_inputs(n_counties: int = 120, tracts_per_county: int = 3, seed: int = 0):
    """
    Raw census tracts and county tallies where the designated candidate's
    share rises with the white share and falls with income, plus noise.
    """
    rng = np.random.default_rng(seed)
    census_rows = []
    election_rows = []
    for i in range(n_counties):
        abbrev, state = STATES[i % len(STATES)]
        suffix = "Parish" if abbrev == "LA" else "County"
        county = f"County{i:03d}"
        county_white = rng.uniform(30, 90)
        county_income = rng.uniform(30000, 90000)

        tract_white = []
        for t in range(tracts_per_county):
            pop = int(rng.integers(500, 5000))
            white = float(np.clip(county_white + rng.normal(0, 5), 1, 97))
            rest = 100.0 - white
            parts = rng.dirichlet(np.ones(5)) * rest
            census_rows.append({
                "CensusTract": i * 100 + t,
                "State": state,
                "County": county,
                "TotalPop": pop,
                "Men": int(pop * rng.uniform(0.45, 0.55)),
                "Women": 0,
                "Hispanic": parts[0], "White": white, "Black": parts[1],
                "Native": parts[2], "Asian": parts[3], "Pacific": parts[4],
                "Citizen": int(pop * rng.uniform(0.6, 0.9)),
                "Income": county_income + rng.normal(0, 3000),
                "IncomeErr": rng.uniform(500, 3000),
                "Poverty": rng.uniform(5, 30),
                "Professional": rng.uniform(20, 45),
                "Construction": rng.uniform(5, 15),
                "Drive": rng.uniform(60, 90),
                "Walk": rng.uniform(0, 5),
                "PublicWork": rng.uniform(10, 20),
                "Employed": int(pop * rng.uniform(0.4, 0.5)),
                "Unemployment": rng.uniform(3, 12),
            })
            census_rows[-1]["Women"] = pop - census_rows[-1]["Men"]
            tract_white.append(white)

        signal = 0.08 * (np.mean(tract_white) - 60) - 0.00006 * (county_income - 60000)
        share_t = float(np.clip(expit(signal + rng.normal(0, 0.6)), 0.05, 0.95))
        total = 10000
        trump = int(round(share_t * total))
        election_rows += [
            (str(1000 + i), abbrev, f"{county} {suffix}", "Donald Trump", trump),
            (str(1000 + i), abbrev, f"{county} {suffix}", "Hillary Clinton", total - trump),
            (str(1000 + i), abbrev, f"{county} {suffix}", "Gary Johnson", int(rng.integers(10, 400))),
        ]
    election_rows.append(("US", "", "", "Donald Trump", 1))
    census = pd.DataFrame(census_rows)
    elections = pd.DataFrame(election_rows, columns=["fips", "state", "county", "candidate", "votes"])
    return census, elections


@pytest.fixture
def small_census() -> pd.DataFrame:
    return make_small_census()


@pytest.fixture
def small_elections() -> pd.DataFrame:
    return make_small_elections()


@pytest.fixture(scope="session")
def raw_inputs():
    return make_raw_inputs()


@pytest.fixture(scope="session")
def merged_table(raw_inputs) -> pd.DataFrame:
    from pipelines.data.etl_pipeline import run_etl

    census, elections = raw_inputs
    return run_etl(census, elections).merged


@pytest.fixture(scope="session")
def county_frame(merged_table) -> pd.DataFrame:
    from county_vote_demographics.modeling.features import build_county_frame

    return build_county_frame(merged_table, "Donald Trump")
