from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import pandas as pd
from loguru import logger


class SchemaError(ValueError):
    """A table is missing required columns or carries malformed values."""


@dataclass(frozen=True)
class TableSchema:
    """
    Named columns a pipeline stage expects on its input table.

    - key: columns identifying one row; repeated keys raise SchemaError
      (empty for raw tables whose repeats are summed downstream)
    - required: columns that must be present
    - numeric: required columns coerced to float; a non-numeric, non-blank
      value is a malformed row and raises SchemaError
    - text: required columns normalised to stripped strings (blank -> NA)
    """
    name: str
    key: Tuple[str, ...]
    required: Tuple[str, ...]
    numeric: Tuple[str, ...] = ()
    text: Tuple[str, ...] = ()

    def missing(self, df: pd.DataFrame) -> List[str]:
        return [c for c in self.required if c not in df.columns]

    def validate(self, df: pd.DataFrame) -> pd.DataFrame:
        missing = self.missing(df)
        if missing:
            raise SchemaError(f"{self.name} missing columns: {missing}. Columns: {df.columns.tolist()}")

        out = df.copy()
        for c in self.text:
            s = out[c].astype("string").str.strip()
            out[c] = s.mask(s == "", pd.NA)

        for c in self.numeric:
            raw = out[c]
            coerced = pd.to_numeric(raw, errors="coerce")
            blank = (raw.astype("string").str.strip() == "").fillna(True)
            bad = coerced.isna() & raw.notna() & ~blank
            if bad.any():
                examples = raw[bad].astype(str).unique().tolist()[:5]
                raise SchemaError(
                    f"{self.name}: column {c!r} has {int(bad.sum())} non-numeric values (examples: {examples})"
                )
            out[c] = coerced.astype("float64")

        if self.key:
            dupes = out.duplicated(list(self.key), keep=False)
            if dupes.any():
                examples = out.loc[dupes, list(self.key)].drop_duplicates().head(5).values.tolist()
                raise SchemaError(
                    f"{self.name}: {int(dupes.sum())} rows share a key {list(self.key)} (examples: {examples})"
                )
        return out


CENSUS_TRACT = TableSchema(
    name="census_tract",
    key=("censustract",),
    required=("censustract", "state", "county", "totalpop"),
    numeric=("totalpop",),
    text=("state", "county"),
)

COUNTY_DEMOGRAPHICS = TableSchema(
    name="county_demographics",
    key=("state", "county"),
    required=("state", "county", "totalpop"),
    numeric=("totalpop",),
    text=("state", "county"),
)

ELECTION_TALLY = TableSchema(
    name="election_tally",
    key=(),
    required=("fips", "state", "county", "candidate", "votes"),
    numeric=("votes",),
    text=("fips", "state", "county", "candidate"),
)

TOP_TWO_TALLY = TableSchema(
    name="top_two_tally",
    key=("state", "county", "candidate"),
    required=("state", "county", "candidate", "votes", "rank", "top_two_votes", "share"),
    numeric=("votes", "top_two_votes", "share"),
    text=("state", "county", "candidate"),
)

MERGED = TableSchema(
    name="merged",
    key=("state_key", "county_key", "candidate"),
    required=("state_key", "county_key", "candidate", "votes", "rank", "share", "totalpop"),
    numeric=("votes", "share", "totalpop"),
    text=("state_key", "county_key", "candidate"),
)


@dataclass
class DropLog:
    """Rows removed by each stage, with the reason they went."""
    entries: List[dict] = field(default_factory=list)

    def record(self, stage: str, reason: str, rows: int, total: int | None = None) -> None:
        rows = int(rows)
        self.entries.append({"stage": stage, "reason": reason, "rows": rows})
        if rows == 0:
            logger.debug(f"[{stage}] {reason}: nothing dropped")
            return
        suffix = f" of {total}" if total is not None else ""
        logger.warning(f"[{stage}] dropped {rows}{suffix} rows: {reason}")

    def total(self, stage: str | None = None) -> int:
        return sum(e["rows"] for e in self.entries if stage is None or e["stage"] == stage)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.entries, columns=["stage", "reason", "rows"])
