from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from ..config import LOG_LEVELS, ON_BAD_LINES_CHOICES, load_app_config
from ..errors import RatingDataError
from ..paths import resolve_path
from ..utils import setup_logging
from .predictor import UserCFPredictor


logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Predict a user's rating for an item with user-user collaborative filtering")
    p.add_argument("--user-id", type=int, default=1, help="Target userId (1-based)")
    p.add_argument("--item-id", type=int, default=2, help="Target itemId (1-based)")
    p.add_argument("--k", type=int, default=None, help="Number of neighbors; default from config")
    p.add_argument("--ratings", type=Path, default=None, help="Headerless userId,itemId,rating CSV; default from config")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: <repo>/config.yaml if present)")
    p.add_argument("--on-bad-lines", choices=ON_BAD_LINES_CHOICES, default=None, help="Fail or skip malformed lines")
    p.add_argument("--show-neighbors", action="store_true", help="Also print the neighbors used")
    p.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None, help="Logging level; default from config")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    cfg, base_dir = load_app_config(args.config)
    setup_logging(args.log_level or cfg.logging.level)

    if args.ratings is not None:
        ratings_path = Path(args.ratings).resolve()
    else:
        ratings_path = resolve_path(base_dir, cfg.dataset.raw_dir) / cfg.dataset.ratings_file
    k = int(args.k) if args.k is not None else cfg.user_cf.k
    on_bad_lines = args.on_bad_lines or cfg.dataset.on_bad_lines

    try:
        predictor = UserCFPredictor.from_csv(ratings_path, on_bad_lines=on_bad_lines, default_k=cfg.user_cf.k)
        stats = predictor.stats()
        print(f"Number of Users: {stats.num_users}")
        print(f"Number of Items: {stats.num_items}")

        prediction = predictor.predict(args.user_id, args.item_id, k=k)
        print(f"Predicted Rating for User {args.user_id} on Item {args.item_id}: {prediction:.4f}")

        if args.show_neighbors:
            neighbors = predictor.neighbors(args.user_id, args.item_id, k=k)
            print("\n=== Neighbors ===")
            if neighbors:
                df_n = pd.DataFrame([n.__dict__ for n in neighbors])
                print(df_n.to_string(index=False))
            else:
                print("No other user rated this item.")
    except (RatingDataError, FileNotFoundError) as exc:
        logger.debug("prediction failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
