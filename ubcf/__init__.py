"""Memory-based user-user collaborative filtering rating prediction."""

from .errors import EmptyDataset, InvalidIdentifier, MalformedRecord, OutOfRange, RatingDataError

__all__ = [
    "EmptyDataset",
    "InvalidIdentifier",
    "MalformedRecord",
    "OutOfRange",
    "RatingDataError",
]
