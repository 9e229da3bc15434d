#!/usr/bin/env python3
from __future__ import annotations

import csv
import re
from pathlib import Path

import pandas as pd

SUPPORTED_TABULAR = (".csv", ".tsv", ".txt", ".parquet", ".pq", ".feather")


def mkdir_p(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def stdcols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [
        re.sub(r"_{2,}", "_", re.sub(r"[^\w]+", "_", str(c).strip().lower())).strip("_")
        for c in df.columns
    ]
    return df


def dataset_key(path: Path) -> str:
    return re.sub(r"_{2,}", "_", re.sub(r"[^a-z0-9_]+", "_", path.stem.lower())).strip("_")


def _sniff_delimiter(path: Path) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        sample = f.read(8192)

    candidates = ["|", "\t", ",", ";"]
    try:
        return csv.Sniffer().sniff(sample, delimiters=candidates).delimiter
    except csv.Error:
        counts = {d: sample.count(d) for d in candidates}
        return max(counts, key=counts.get)


def read_any(path: Path) -> pd.DataFrame:
    path = Path(path)
    ext = path.suffix.lower()
    if ext not in SUPPORTED_TABULAR:
        raise ValueError(f"Unsupported input file type: {path} (expected one of {SUPPORTED_TABULAR})")
    if ext in (".parquet", ".pq"):
        return pd.read_parquet(path)
    if ext == ".feather":
        return pd.read_feather(path)
    if ext == ".csv":
        return pd.read_csv(path)
    if ext == ".tsv":
        return pd.read_csv(path, sep="\t")
    return pd.read_csv(path, sep=_sniff_delimiter(path), engine="python")


def write_parquet(df: pd.DataFrame, path: Path) -> None:
    mkdir_p(path.parent)
    df.to_parquet(path, index=False)


def write_csv(df: pd.DataFrame, path: Path) -> None:
    mkdir_p(path.parent)
    df.to_csv(path, index=False)
