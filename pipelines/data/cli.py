#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

from county_vote_demographics.config import CENSUS_CSV, ELECTION_CSV, PROCESSED_DATA_DIR

from .census import DEFAULT_IRRELEVANT
from .etl_pipeline import build_processed_inputs


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Reduce census tracts and election tallies to a merged county table."
    )
    ap.add_argument("--census", type=Path, default=CENSUS_CSV, help="Tract-level census table (csv/tsv/parquet).")
    ap.add_argument("--elections", type=Path, default=ELECTION_CSV,
                    help="Election tallies with fips, state, county, candidate, votes.")
    ap.add_argument("--out", type=Path, default=PROCESSED_DATA_DIR, help="Output directory (data/processed).")
    ap.add_argument(
        "--drop-measure",
        action="append",
        default=None,
        help="Census measure to leave out of the county table (repeatable). "
             f"Defaults to {', '.join(DEFAULT_IRRELEVANT)}.",
    )
    return ap


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    irrelevant = tuple(m.strip().lower() for m in args.drop_measure) if args.drop_measure else DEFAULT_IRRELEVANT

    build_processed_inputs(
        census_path=args.census,
        elections_path=args.elections,
        processed_dir=args.out,
        irrelevant=irrelevant,
    )


if __name__ == "__main__":
    main()
