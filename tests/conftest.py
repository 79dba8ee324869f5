from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `import ubcf...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from ubcf.user_cf.matrix import RatingMatrix, build_rating_matrix  # noqa: E402


# user1=[5,3], user2=[4,3], user3=[0,5]
SCENARIO_OBSERVATIONS = [(1, 1, 5.0), (1, 2, 3.0), (2, 1, 4.0), (2, 2, 3.0), (3, 2, 5.0)]


@pytest.fixture()
def scenario_matrix() -> RatingMatrix:
    return build_rating_matrix(SCENARIO_OBSERVATIONS)
