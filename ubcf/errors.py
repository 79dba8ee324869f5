"""Error taxonomy shared by ingestion, matrix building and prediction."""

from __future__ import annotations

from typing import Sequence


class RatingDataError(Exception):
    """Base class for every recoverable rating-data error."""


class InvalidIdentifier(RatingDataError, ValueError):
    """A user/item id is not a positive integer, or a rating is not a positive finite number."""


class EmptyDataset(RatingDataError, ValueError):
    """No observations were supplied, so matrix dimensions cannot be derived."""


class MalformedRecord(RatingDataError, ValueError):
    """A record could not be read as a (userId, itemId, rating) triple."""

    def __init__(self, message: str, *, line_numbers: Sequence[int] = ()) -> None:
        super().__init__(message)
        self.line_numbers = tuple(int(n) for n in line_numbers)


class OutOfRange(RatingDataError, IndexError):
    """Prediction requested for a user/item outside the matrix, or with k < 1."""
