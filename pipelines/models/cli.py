from __future__ import annotations
import argparse
from pathlib import Path

from loguru import logger

from county_vote_demographics.config import (
    CENSUS_CSV, ELECTION_CSV, MODEL_REPORTS_DIR, PROCESSED_DATA_DIR, WAREHOUSE_DB,
)
from county_vote_demographics.modeling.config import AnalysisParams, ModelParams
from county_vote_demographics.modeling.io import read_table
from county_vote_demographics.modeling.report import build_summary, format_summary, write_model_reports
from county_vote_demographics.modeling.suite import fit_all_models

from ..data.etl_pipeline import build_processed_inputs, out_paths
from .io_export import connect_db, export_outputs

STAGES = ["etl", "models", "export", "all"]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="County vote/demographics pipeline with stages")
    p.add_argument("--stage", default="all", choices=STAGES)

    p.add_argument("--census", type=Path, default=CENSUS_CSV)
    p.add_argument("--elections", type=Path, default=ELECTION_CSV)
    p.add_argument("--processed", type=Path, default=PROCESSED_DATA_DIR, help="ETL output directory")
    p.add_argument("--reports", type=Path, default=MODEL_REPORTS_DIR, help="Model report directory")
    p.add_argument("--db", type=Path, default=WAREHOUSE_DB, help="DuckDB file for stage=export")

    p.add_argument("--candidate", default=AnalysisParams.candidate)
    p.add_argument("--seed", type=int, default=ModelParams.random_seed)
    p.add_argument("--clusters", type=int, default=ModelParams.n_clusters)
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    params = ModelParams(random_seed=args.seed, n_clusters=args.clusters)
    analysis = AnalysisParams(candidate=args.candidate)

    def run_etl():
        build_processed_inputs(args.census, args.elections, args.processed)

    def run_models():
        merged_path = out_paths(args.processed)["merged"]
        if not merged_path.exists():
            raise FileNotFoundError(f"{merged_path} not found; run --stage etl first.")
        merged = read_table(str(merged_path))
        results = fit_all_models(merged, params, analysis)
        outs = write_model_reports(results, args.reports)
        for line in format_summary(build_summary(results)):
            print(line)
        logger.success(f"Wrote model reports to {outs['metrics'].parent}")

    def run_export():
        con = connect_db(args.db)
        try:
            export_outputs(con, [args.processed, args.reports])
        finally:
            con.close()

    # Execute
    if args.stage == "etl":
        run_etl()
    elif args.stage == "models":
        run_models()
    elif args.stage == "export":
        run_export()
    elif args.stage == "all":
        run_etl()
        run_models()
        run_export()

    logger.info(f"Done. stage={args.stage}")


if __name__ == "__main__":
    main()
