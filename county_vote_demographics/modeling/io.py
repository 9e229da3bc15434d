import json
import math
import os
from typing import Any, Dict

import numpy as np
import pandas as pd

def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)

def read_table(path: str) -> pd.DataFrame:
    path = str(path)
    if path.endswith(".parquet"):
        return pd.read_parquet(path)
    if path.endswith(".csv"):
        return pd.read_csv(path)
    raise ValueError(f"Unsupported file type: {path}")

def write_parquet(df: pd.DataFrame, path: str) -> None:
    ensure_dir(os.path.dirname(str(path)))
    df.to_parquet(path, index=False)

def write_csv(df: pd.DataFrame, path: str) -> None:
    ensure_dir(os.path.dirname(str(path)))
    df.to_csv(path, index=False)

def _jsonable(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    if isinstance(obj, np.generic):
        obj = obj.item()
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj

def write_json(obj: Dict[str, Any], path: str) -> None:
    ensure_dir(os.path.dirname(str(path)))
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_jsonable(obj), f, indent=2)

def read_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
