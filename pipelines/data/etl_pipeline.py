#!/usr/bin/env python3
# pipelines/data/etl_pipeline.py

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import pandas as pd
from loguru import logger

from .census import DEFAULT_IRRELEVANT, normalize_census
from .elections import ElectionPartitions, national_totals, reduce_elections
from .io import mkdir_p, read_any, write_csv, write_parquet
from .merge import merge_county_tables
from .schema import DropLog


# ============================== OUTPUTS ==============================
def out_paths(processed_dir: Path) -> dict[str, Path]:
    return {
        "county_demographics": processed_dir / "county_demographics.parquet",
        "top_two": processed_dir / "election_top_two.parquet",
        "national": processed_dir / "election_national.csv",
        "merged": processed_dir / "merged.parquet",
        "drop_log": processed_dir / "drop_log.csv",
    }


@dataclass
class EtlOutputs:
    county_demographics: pd.DataFrame
    top_two: pd.DataFrame
    partitions: ElectionPartitions
    merged: pd.DataFrame
    drop_log: DropLog = field(default_factory=DropLog)


# ============================== STAGES ==============================
def run_etl(
    census_raw: pd.DataFrame,
    elections_raw: pd.DataFrame,
    irrelevant: Sequence[str] = DEFAULT_IRRELEVANT,
) -> EtlOutputs:
    """Census + election tables in, merged county table out. Nothing is written."""
    drop_log = DropLog()

    logger.info("========== Stage 1: census tracts -> counties ==========")
    county_demo = normalize_census(census_raw, irrelevant=irrelevant, drop_log=drop_log)

    logger.info("========== Stage 2: election tallies -> top two ==========")
    top_two, parts = reduce_elections(elections_raw, drop_log=drop_log)

    logger.info("========== Stage 3: merge ==========")
    merged = merge_county_tables(county_demo, top_two, drop_log=drop_log)

    return EtlOutputs(
        county_demographics=county_demo,
        top_two=top_two,
        partitions=parts,
        merged=merged,
        drop_log=drop_log,
    )


def build_processed_inputs(
    census_path: Path,
    elections_path: Path,
    processed_dir: Path,
    irrelevant: Sequence[str] = DEFAULT_IRRELEVANT,
) -> dict[str, Path]:
    mkdir_p(processed_dir)
    outs = out_paths(processed_dir)

    logger.info(f"[ETL] Reading census {census_path}")
    census_raw = read_any(census_path)
    logger.info(f"[ETL] Reading elections {elections_path}")
    elections_raw = read_any(elections_path)

    res = run_etl(census_raw, elections_raw, irrelevant=irrelevant)

    write_parquet(res.county_demographics, outs["county_demographics"])
    write_parquet(res.top_two, outs["top_two"])
    write_csv(national_totals(res.partitions.federal), outs["national"])
    write_parquet(res.merged, outs["merged"])
    write_csv(res.drop_log.to_frame(), outs["drop_log"])

    logger.success("Wrote processed inputs:")
    for k, pth in outs.items():
        logger.info(f"  {k}: {pth}")
    return outs
