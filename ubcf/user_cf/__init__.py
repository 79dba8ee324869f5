"""User-user collaborative filtering (similar rating patterns) over a dense rating matrix.

- Build a dense user x item matrix from (userId, itemId, rating) observations
- Score other users by cosine similarity over the items both rated
- Predict a rating as the similarity-weighted average of the k nearest raters
"""

from .matrix import MatrixStats, RatingMatrix, build_rating_matrix, matrix_stats
from .predictor import Neighbor, UserCFPredictor, nearest_neighbors, predict_rating
from .similarity import cosine_similarity

__all__ = [
    "MatrixStats",
    "Neighbor",
    "RatingMatrix",
    "UserCFPredictor",
    "build_rating_matrix",
    "cosine_similarity",
    "matrix_stats",
    "nearest_neighbors",
    "predict_rating",
]
