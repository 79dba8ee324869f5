from __future__ import annotations

import numpy as np


def co_rated_cosine(target: np.ndarray, rows: np.ndarray) -> np.ndarray:
    """Cosine similarity between `target` and each row of `rows`, over co-rated items only.

    Only positions where both vectors are non-zero contribute to the dot
    product and to both sums of squares. Pairs whose sum of squares is zero on
    either side (no overlap) get similarity 0.0.
    """
    target = np.asarray(target, dtype=np.float64).reshape(-1)
    rows = np.asarray(rows, dtype=np.float64)
    if rows.ndim == 1:
        rows = rows.reshape(1, -1)
    if rows.shape[1] != target.shape[0]:
        raise ValueError(f"length mismatch: target has {target.shape[0]} items, rows have {rows.shape[1]}")

    both = (rows != 0.0) & (target != 0.0)
    dot = np.where(both, rows * target, 0.0).sum(axis=1)
    sum_sq_target = np.where(both, target * target, 0.0).sum(axis=1)
    sum_sq_rows = np.where(both, rows * rows, 0.0).sum(axis=1)

    out = np.zeros(rows.shape[0], dtype=np.float64)
    ok = (sum_sq_target != 0.0) & (sum_sq_rows != 0.0)
    out[ok] = dot[ok] / (np.sqrt(sum_sq_target[ok]) * np.sqrt(sum_sq_rows[ok]))
    return out


def co_rated_count(target: np.ndarray, rows: np.ndarray) -> np.ndarray:
    """Number of items rated (non-zero) by both `target` and each row."""
    target = np.asarray(target).reshape(-1)
    rows = np.asarray(rows)
    if rows.ndim == 1:
        rows = rows.reshape(1, -1)
    return ((rows != 0.0) & (target != 0.0)).sum(axis=1).astype(np.int64)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Co-rated cosine similarity between two rating vectors. Symmetric in (a, b)."""
    return float(co_rated_cosine(a, b)[0])
