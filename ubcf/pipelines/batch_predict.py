"""Offline batch prediction: score a file of (userId, itemId) queries against one rating matrix."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..config import ON_BAD_LINES_CHOICES, load_app_config
from ..data import parse_numeric_lines
from ..errors import OutOfRange
from ..paths import ProjectPaths
from ..user_cf.predictor import UserCFPredictor, nearest_neighbors, weighted_average
from ..utils import setup_logging


logger = logging.getLogger(__name__)

QUERY_COLUMNS = ("userId", "itemId")
OUTPUT_COLUMNS = ["line", "userId", "itemId", "k", "prediction", "n_neighbors", "status", "error"]


@dataclass(frozen=True)
class BatchSummary:
    n_queries: int
    n_ok: int
    n_failed: int
    out_path: Path


def load_queries(path: Path) -> pd.DataFrame:
    """Load a headerless `userId,itemId` CSV of prediction queries.

    Indexed by 1-based source line. Lines that are not two integers are kept
    with `malformed=True` so the batch can report them.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Could not open queries file: {path}")
    return parse_numeric_lines(path.read_text(), QUERY_COLUMNS, integral=QUERY_COLUMNS)


def predict_queries(predictor: UserCFPredictor, queries: pd.DataFrame, *, k: int) -> pd.DataFrame:
    """Predict every query row; malformed and out-of-range queries are recorded, not raised."""
    rows: list[dict[str, object]] = []
    for line, query in zip(queries.index.tolist(), queries.itertuples(index=False)):
        if query.malformed:
            logger.warning("Query at line %d is malformed; expected userId,itemId", line)
            rows.append(
                {
                    "line": int(line),
                    "k": int(k),
                    "n_neighbors": 0,
                    "status": "malformed",
                    "error": f"line {line}: expected two integer fields userId,itemId",
                }
            )
            continue

        user_id, item_id = int(query.userId), int(query.itemId)
        row: dict[str, object] = {"line": int(line), "userId": user_id, "itemId": item_id, "k": int(k)}
        try:
            neighbors = nearest_neighbors(predictor.matrix, user_id, item_id, int(k))
        except OutOfRange as exc:
            logger.warning("Query userId=%s itemId=%s failed: %s", user_id, item_id, exc)
            row.update(prediction=None, n_neighbors=0, status="out_of_range", error=str(exc))
        else:
            row.update(
                prediction=weighted_average(neighbors),
                n_neighbors=len(neighbors),
                status="ok",
                error=None,
            )
        rows.append(row)
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def run_batch_predict(
    *,
    ratings_path: Path,
    queries_path: Path,
    out_path: Path,
    k: int,
    on_bad_lines: str = "error",
) -> BatchSummary:
    if int(k) < 1:
        raise OutOfRange(f"k must be >= 1, got {k}")
    predictor = UserCFPredictor.from_csv(ratings_path, on_bad_lines=on_bad_lines, default_k=k)
    stats = predictor.stats()
    logger.info(
        "Batch predict: users=%d items=%d ratings=%d k=%d",
        stats.num_users,
        stats.num_items,
        stats.num_ratings,
        int(k),
    )

    queries = load_queries(queries_path)
    results = predict_queries(predictor, queries, k=int(k))

    out_path = Path(out_path).resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(out_path, index=False)

    n_ok = int((results["status"] == "ok").sum())
    summary = BatchSummary(
        n_queries=int(len(results)),
        n_ok=n_ok,
        n_failed=int(len(results)) - n_ok,
        out_path=out_path,
    )
    logger.info("Wrote %d predictions (%d failed) to %s", summary.n_queries, summary.n_failed, out_path)
    return summary


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Batch-predict ratings for a file of (userId, itemId) queries.")
    p.add_argument("--queries", type=Path, required=True, help="Headerless userId,itemId CSV")
    p.add_argument("--ratings", type=Path, default=None, help="Headerless userId,itemId,rating CSV; default from config")
    p.add_argument("--out", type=Path, default=None, help="Output CSV (default: artifacts/predictions/predictions.csv)")
    p.add_argument("--k", type=int, default=None, help="Number of neighbors; default from config")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML.")
    p.add_argument("--on-bad-lines", choices=ON_BAD_LINES_CHOICES, default=None, help="Fail or skip malformed lines")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    cfg, base_dir = load_app_config(args.config)
    setup_logging(cfg.logging.level)

    paths = ProjectPaths.from_repo_root(base_dir, raw_dir=cfg.dataset.raw_dir)
    ratings_path = (
        Path(args.ratings).resolve() if args.ratings is not None else paths.raw_dir / cfg.dataset.ratings_file
    )
    out_path = Path(args.out).resolve() if args.out is not None else paths.predictions_dir / "predictions.csv"

    run_batch_predict(
        ratings_path=ratings_path,
        queries_path=Path(args.queries).resolve(),
        out_path=out_path,
        k=int(args.k) if args.k is not None else cfg.user_cf.k,
        on_bad_lines=args.on_bad_lines or cfg.dataset.on_bad_lines,
    )


if __name__ == "__main__":
    main()
