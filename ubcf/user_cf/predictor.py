"""k-nearest-neighbor user-user rating prediction over a dense rating matrix.

Prediction for (user u, item i):
- Candidates: every other user with a non-zero rating for i
- Similarity: cosine over the items both users rated (see `similarity.py`)
- Ranking: similarity descending, ties by ascending userId
- Estimate: sum(sim * rating) / sum(|sim|) over the top-k candidates,
  or 0.0 when there are no candidates or the weights sum to zero
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import numpy as np

from ..data import OnBadLines, Observation, load_observations
from ..errors import OutOfRange
from .matrix import UNRATED, MatrixStats, RatingMatrix, build_rating_matrix, is_whole_number, matrix_stats
from .similarity import co_rated_cosine, co_rated_count


logger = logging.getLogger(__name__)

# Returned when there is no basis for a prediction.
NO_PREDICTION = 0.0


@dataclass(frozen=True)
class Neighbor:
    userId: int
    similarity: float
    rating: float
    common_rated: int


def _check_query(matrix: RatingMatrix, user_id: int, item_id: int, k: int) -> None:
    if not matrix.has_user(user_id):
        raise OutOfRange(f"userId {user_id!r} is not an integer in [1, {matrix.num_users}]")
    if not matrix.has_item(item_id):
        raise OutOfRange(f"itemId {item_id!r} is not an integer in [1, {matrix.num_items}]")
    if not is_whole_number(k) or int(k) < 1:
        raise OutOfRange(f"k must be an integer >= 1, got {k!r}")


def nearest_neighbors(matrix: RatingMatrix, user_id: int, item_id: int, k: int) -> list[Neighbor]:
    """Return the (at most k) most similar users that rated `item_id`, best first."""
    _check_query(matrix, user_id, item_id, k)
    uidx = int(user_id) - 1
    iidx = int(item_id) - 1

    values = matrix.values
    rated_item = values[:, iidx] != UNRATED
    rated_item[uidx] = False
    cand_idx = np.flatnonzero(rated_item)
    if cand_idx.size == 0:
        return []

    target = values[uidx]
    sims = co_rated_cosine(target, values[cand_idx])
    common = co_rated_count(target, values[cand_idx])

    # Stable sort keeps ascending user order among equal similarities.
    order = np.argsort(-sims, kind="stable")[: int(k)]

    return [
        Neighbor(
            userId=int(cand_idx[j]) + 1,
            similarity=float(sims[j]),
            rating=float(values[cand_idx[j], iidx]),
            common_rated=int(common[j]),
        )
        for j in order
    ]


def weighted_average(neighbors: Iterable[Neighbor]) -> float:
    numerator = 0.0
    denominator = 0.0
    for n in neighbors:
        numerator += n.similarity * n.rating
        denominator += abs(n.similarity)
    if denominator == 0.0:
        return NO_PREDICTION
    return numerator / denominator


def predict_rating(matrix: RatingMatrix, user_id: int, item_id: int, k: int) -> float:
    """Predict `user_id`'s rating of `item_id` from its k nearest neighbors.

    Raises OutOfRange for ids outside the matrix or k < 1. Returns 0.0 when no
    other user rated the item or every selected neighbor has similarity 0.
    """
    neighbors = nearest_neighbors(matrix, user_id, item_id, k)
    prediction = weighted_average(neighbors)
    logger.debug(
        "predict userId=%d itemId=%d k=%d neighbors=%d prediction=%.4f",
        int(user_id),
        int(item_id),
        int(k),
        len(neighbors),
        prediction,
    )
    return prediction


class UserCFPredictor:
    """Holds one rating matrix and answers prediction queries against it."""

    def __init__(self, matrix: RatingMatrix, *, default_k: int = 5) -> None:
        if int(default_k) < 1:
            raise ValueError(f"default_k must be >= 1, got {default_k}")
        self.matrix = matrix
        self.default_k = int(default_k)

    @classmethod
    def from_observations(
        cls,
        observations: Iterable[Observation | tuple[Any, Any, Any]],
        *,
        default_k: int = 5,
    ) -> "UserCFPredictor":
        return cls(build_rating_matrix(observations), default_k=default_k)

    @classmethod
    def from_csv(
        cls,
        path: Path,
        *,
        on_bad_lines: OnBadLines = "error",
        default_k: int = 5,
    ) -> "UserCFPredictor":
        observations = load_observations(path, on_bad_lines=on_bad_lines)
        return cls.from_observations(observations, default_k=default_k)

    def has_user(self, userId: int) -> bool:
        return self.matrix.has_user(userId)

    def has_item(self, itemId: int) -> bool:
        return self.matrix.has_item(itemId)

    def stats(self) -> MatrixStats:
        return matrix_stats(self.matrix)

    def predict(self, userId: int, itemId: int, *, k: int | None = None) -> float:
        return predict_rating(self.matrix, userId, itemId, self.default_k if k is None else k)

    def neighbors(self, userId: int, itemId: int, *, k: int | None = None) -> list[Neighbor]:
        return nearest_neighbors(self.matrix, userId, itemId, self.default_k if k is None else k)
