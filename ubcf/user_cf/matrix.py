"""Dense user x item rating matrix built from sparse (userId, itemId, rating) observations."""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Iterable

import numpy as np

from ..data import Observation
from ..errors import EmptyDataset, InvalidIdentifier, MalformedRecord


logger = logging.getLogger(__name__)

# Stored value for "no rating recorded".
UNRATED = 0.0


@dataclass(frozen=True)
class MatrixStats:
    num_users: int
    num_items: int
    num_ratings: int
    density: float


@dataclass(frozen=True, eq=False)
class RatingMatrix:
    """Read-only dense rating matrix.

    Row `u - 1` holds user `u`, column `i - 1` holds item `i`. Cells without an
    observation hold `UNRATED` (0.0). The matrix keeps its own non-writeable
    float64 copy of `values`, so it can be shared by concurrent readers.
    """

    values: np.ndarray

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.float64, copy=True)
        if values.ndim != 2:
            raise ValueError(f"rating matrix must be 2-D, got shape {values.shape}")
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @property
    def num_users(self) -> int:
        return int(self.values.shape[0])

    @property
    def num_items(self) -> int:
        return int(self.values.shape[1])

    def has_user(self, user_id: int) -> bool:
        return is_whole_number(user_id) and 1 <= int(user_id) <= self.num_users

    def has_item(self, item_id: int) -> bool:
        return is_whole_number(item_id) and 1 <= int(item_id) <= self.num_items

    def get_rating(self, user_id: int, item_id: int) -> float | None:
        """Return the stored rating, or None when the cell is unrated."""
        if not (self.has_user(user_id) and self.has_item(item_id)):
            raise KeyError(f"(userId={user_id}, itemId={item_id}) is outside the rating matrix")
        value = float(self.values[int(user_id) - 1, int(item_id) - 1])
        return None if value == UNRATED else value


def is_whole_number(value: Any) -> bool:
    """True for real, finite, integral values (bools excluded)."""
    if not _is_number(value):
        return False
    value_f = float(value)
    return math.isfinite(value_f) and value_f == int(value_f)


def _as_triple(record: Any) -> tuple[Any, Any, Any]:
    if isinstance(record, Observation):
        return record.user_id, record.item_id, record.rating
    if isinstance(record, (str, bytes)):
        raise MalformedRecord(f"expected a (userId, itemId, rating) triple, got {record!r}")
    try:
        fields = tuple(record)
    except TypeError:
        raise MalformedRecord(f"expected a (userId, itemId, rating) triple, got {record!r}") from None
    if len(fields) != 3:
        raise MalformedRecord(f"expected 3 fields (userId, itemId, rating), got {len(fields)}: {record!r}")
    return fields[0], fields[1], fields[2]


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _validate_id(value: Any, name: str) -> int:
    if not _is_number(value):
        raise MalformedRecord(f"{name} must be numeric, got {value!r}")
    if not is_whole_number(value) or float(value) < 1:
        raise InvalidIdentifier(f"{name} must be a positive integer, got {value!r}")
    return int(value)


def _validate_rating(value: Any) -> float:
    if not _is_number(value):
        raise MalformedRecord(f"rating must be numeric, got {value!r}")
    value_f = float(value)
    if not math.isfinite(value_f) or value_f <= 0.0:
        raise InvalidIdentifier(f"rating must be a positive finite number, got {value!r}")
    return value_f


def build_rating_matrix(observations: Iterable[Observation | tuple[Any, Any, Any]]) -> RatingMatrix:
    """Materialize a dense rating matrix from sparse observations.

    - Later observations for the same (userId, itemId) overwrite earlier ones.
    - num_users is the max observed userId; num_items is the max itemId seen
      for any user.
    - Raises EmptyDataset, MalformedRecord or InvalidIdentifier; nothing is
      returned unless every record is valid.
    """
    # Pass 1: de-duplicate (last write wins) and track dimensions.
    ratings: dict[tuple[int, int], float] = {}
    max_user = 0
    max_item = 0
    for record in observations:
        raw_user, raw_item, raw_rating = _as_triple(record)
        user_id = _validate_id(raw_user, "userId")
        item_id = _validate_id(raw_item, "itemId")
        rating = _validate_rating(raw_rating)

        ratings[(user_id, item_id)] = rating
        max_user = max(max_user, user_id)
        max_item = max(max_item, item_id)

    if not ratings:
        raise EmptyDataset("no rating observations supplied; cannot derive matrix dimensions")

    # Pass 2: dense materialization.
    values = np.full((max_user, max_item), UNRATED, dtype=np.float64)
    for (user_id, item_id), rating in ratings.items():
        values[user_id - 1, item_id - 1] = rating

    matrix = RatingMatrix(values=values)
    logger.info(
        "Rating matrix built: users=%d items=%d ratings=%d",
        matrix.num_users,
        matrix.num_items,
        len(ratings),
    )
    return matrix


def matrix_stats(matrix: RatingMatrix) -> MatrixStats:
    num_ratings = int(np.count_nonzero(matrix.values))
    cells = matrix.num_users * matrix.num_items
    return MatrixStats(
        num_users=matrix.num_users,
        num_items=matrix.num_items,
        num_ratings=num_ratings,
        density=(float(num_ratings) / float(cells)) if cells else 0.0,
    )
