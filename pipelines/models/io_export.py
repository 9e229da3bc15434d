from __future__ import annotations

import os
from pathlib import Path

import duckdb
import pandas as pd
from loguru import logger

# Processed tables and model reports loaded into the warehouse, by table name
WAREHOUSE_TABLES = {
    "county_demographics": "county_demographics.parquet",
    "election_top_two": "election_top_two.parquet",
    "election_national": "election_national.csv",
    "merged": "merged.parquet",
    "drop_log": "drop_log.csv",
    "ols_coefficients": "ols_coefficients.csv",
    "logistic_coefficients": "logistic_coefficients.csv",
    "logistic_roc": "logistic_roc.csv",
    "forest_importance": "forest_importance.csv",
    "boost_influence": "boost_influence.csv",
    "boost_cv_loss": "boost_cv_loss.csv",
    "cluster_summary": "cluster_summary.csv",
    "inertia_sweep": "inertia_sweep.csv",
    "svd_scores": "svd_scores.parquet",
}


def connect_db(db_path, threads: int = 4) -> duckdb.DuckDBPyConnection:
    db_path = str(db_path)
    dir_ = os.path.dirname(db_path)
    if dir_:
        os.makedirs(dir_, exist_ok=True)
    con = duckdb.connect(db_path)
    con.execute(f"PRAGMA threads={int(threads)};")
    return con


def load_table(con: duckdb.DuckDBPyConnection, table: str, path: Path) -> int:
    if path.suffix == ".parquet":
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(path)
    con.register("tmp_load", df)
    con.execute(f"CREATE OR REPLACE TABLE {table} AS SELECT * FROM tmp_load")
    con.unregister("tmp_load")
    return len(df)


def export_outputs(con: duckdb.DuckDBPyConnection, search_dirs: list[Path]) -> list[str]:
    """Load every known output found in `search_dirs` into DuckDB tables."""
    loaded = []
    for table, fname in WAREHOUSE_TABLES.items():
        path = next((Path(d) / fname for d in search_dirs if (Path(d) / fname).exists()), None)
        if path is None:
            continue
        n = load_table(con, table, path)
        logger.info(f"[export] {table} <- {path} ({n} rows)")
        loaded.append(table)

    if not loaded:
        logger.warning("[export] No outputs were found to load (run the etl/models stages first).")
    return loaded
