from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Sequence

import numpy as np
import pandas as pd

from .errors import MalformedRecord


logger = logging.getLogger(__name__)

OnBadLines = Literal["error", "skip"]

RATING_COLUMNS = ("userId", "itemId", "rating")


@dataclass(frozen=True)
class Observation:
    user_id: int
    item_id: int
    rating: float


def format_line_numbers(line_numbers: List[int], limit: int = 10) -> str:
    shown = ", ".join(str(n) for n in line_numbers[:limit])
    if len(line_numbers) > limit:
        shown += f", ... (+{len(line_numbers) - limit} more)"
    return shown


def parse_numeric_lines(text: str, columns: Sequence[str], *, integral: Sequence[str] = ()) -> pd.DataFrame:
    """Split headerless comma-separated lines into numeric columns.

    Blank lines are dropped. The result is indexed by 1-based source line and
    carries a boolean `malformed` column: wrong field count, a non-numeric
    field, or a non-integral value in one of the `integral` columns.
    Malformed rows hold NaN in every value column.
    """
    columns = list(columns)
    lines = pd.Series(text.splitlines(), dtype="string")
    lines.index = pd.RangeIndex(1, len(lines) + 1)
    lines = lines[lines.str.strip() != ""]
    if lines.empty:
        out = pd.DataFrame({c: pd.Series(dtype="float64") for c in columns})
        out["malformed"] = pd.Series(dtype="bool")
        return out

    parts = lines.str.split(",")
    wrong_shape = (parts.str.len() != len(columns)).to_numpy()

    fields = pd.DataFrame(
        [p if len(p) == len(columns) else [None] * len(columns) for p in parts.tolist()],
        index=lines.index,
        columns=columns,
    )
    numeric = fields.apply(
        lambda col: pd.to_numeric(col.map(lambda v: v.strip() if isinstance(v, str) else v), errors="coerce")
    ).astype("float64")

    not_numeric = numeric.isna().any(axis=1).to_numpy()
    not_integral = np.zeros(len(numeric), dtype=bool)
    if integral:
        ids = numeric[list(integral)]
        not_integral = ~(ids.fillna(0.5) % 1 == 0).all(axis=1).to_numpy()

    malformed = wrong_shape | not_numeric | not_integral
    numeric.loc[malformed, columns] = np.nan
    numeric["malformed"] = malformed
    return numeric


def parse_ratings_text(text: str, *, on_bad_lines: OnBadLines = "error") -> pd.DataFrame:
    """Parse headerless `userId,itemId,rating` lines into a typed DataFrame.

    A line is malformed when it does not have exactly three comma-separated
    fields, when any field is not numeric, or when an id is not integral.
    Range checks (positivity) belong to the matrix builder.

    Returns a DataFrame with columns userId (int64), itemId (int64),
    rating (float64) and a `line` column holding the 1-based source line.
    """
    if on_bad_lines not in ("error", "skip"):
        raise ValueError(f"on_bad_lines must be 'error' or 'skip', got {on_bad_lines!r}")

    numeric = parse_numeric_lines(text, RATING_COLUMNS, integral=("userId", "itemId"))
    bad_mask = numeric["malformed"].to_numpy(dtype=bool)

    if bad_mask.any():
        bad_lines = [int(n) for n in numeric.index[bad_mask]]
        if on_bad_lines == "error":
            raise MalformedRecord(
                f"{len(bad_lines)} malformed rating record(s) at line(s): {format_line_numbers(bad_lines)}",
                line_numbers=bad_lines,
            )
        logger.warning(
            "Skipping %d malformed rating record(s) at line(s): %s",
            len(bad_lines),
            format_line_numbers(bad_lines),
        )
        numeric = numeric[~bad_mask]

    df = pd.DataFrame(
        {
            "userId": numeric["userId"].astype("int64"),
            "itemId": numeric["itemId"].astype("int64"),
            "rating": numeric["rating"].astype("float64"),
            "line": numeric.index.astype("int64"),
        }
    )
    return df.reset_index(drop=True)


def load_ratings(path: Path, *, on_bad_lines: OnBadLines = "error") -> pd.DataFrame:
    """Load a headerless ratings CSV file into a typed DataFrame."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Could not open ratings file: {path}")
    df = parse_ratings_text(path.read_text(), on_bad_lines=on_bad_lines)
    logger.info("Loaded %d rating records from %s", len(df), path)
    return df


def observations_from_frame(df: pd.DataFrame) -> list[Observation]:
    """Convert a ratings DataFrame into `Observation`s, preserving row order."""
    missing = [c for c in RATING_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"ratings frame missing columns: {missing}")
    return [
        Observation(user_id=int(u), item_id=int(i), rating=float(r))
        for u, i, r in zip(df["userId"].tolist(), df["itemId"].tolist(), df["rating"].tolist())
    ]


def load_observations(path: Path, *, on_bad_lines: OnBadLines = "error") -> list[Observation]:
    return observations_from_frame(load_ratings(path, on_bad_lines=on_bad_lines))
