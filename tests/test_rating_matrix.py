from __future__ import annotations

import math

import numpy as np
import pytest

from ubcf.data import Observation
from ubcf.errors import EmptyDataset, InvalidIdentifier, MalformedRecord, RatingDataError
from ubcf.user_cf.matrix import RatingMatrix, build_rating_matrix, matrix_stats


def test_scenario_matrix_layout(scenario_matrix: RatingMatrix) -> None:
    assert scenario_matrix.num_users == 3
    assert scenario_matrix.num_items == 2
    np.testing.assert_array_equal(scenario_matrix.values, np.array([[5.0, 3.0], [4.0, 3.0], [0.0, 5.0]]))


def test_item_dimension_uses_max_item_across_all_users() -> None:
    # The highest userId only rated item 1; item 7 comes from another user.
    matrix = build_rating_matrix([(1, 7, 2.0), (4, 1, 3.5)])
    assert matrix.values.shape == (4, 7)
    assert matrix.values[0, 6] == 2.0
    assert matrix.values[3, 0] == 3.5
    # Users 2 and 3 never appear: rows are all "unrated".
    assert not matrix.values[1].any()
    assert not matrix.values[2].any()


def test_duplicate_pairs_last_write_wins() -> None:
    matrix = build_rating_matrix([(1, 1, 2.0), (2, 2, 4.0), (1, 1, 4.5)])
    assert matrix.get_rating(1, 1) == 4.5


def test_accepts_observation_objects_and_generators() -> None:
    obs = (Observation(user_id=u, item_id=i, rating=r) for u, i, r in [(2, 3, 1.5), (1, 1, 5.0)])
    matrix = build_rating_matrix(obs)
    assert (matrix.num_users, matrix.num_items) == (2, 3)


def test_unrated_cells_are_zero_and_reported_as_none(scenario_matrix: RatingMatrix) -> None:
    assert scenario_matrix.values[2, 0] == 0.0
    assert scenario_matrix.get_rating(3, 1) is None
    assert scenario_matrix.get_rating(3, 2) == 5.0
    with pytest.raises(KeyError):
        scenario_matrix.get_rating(4, 1)


def test_matrix_is_read_only(scenario_matrix: RatingMatrix) -> None:
    with pytest.raises(ValueError):
        scenario_matrix.values[0, 0] = 1.0


def test_empty_dataset() -> None:
    with pytest.raises(EmptyDataset):
        build_rating_matrix([])


@pytest.mark.parametrize(
    "record",
    [
        (0, 1, 3.0),
        (1, 0, 3.0),
        (-2, 1, 3.0),
        (1.5, 1, 3.0),
        (1, math.inf, 3.0),
        (1, 1, 0.0),
        (1, 1, -1.0),
        (1, 1, math.nan),
        (1, 1, math.inf),
    ],
)
def test_invalid_identifiers_and_ratings_fail_fast(record: tuple) -> None:
    with pytest.raises(InvalidIdentifier):
        build_rating_matrix([(1, 1, 4.0), record])


@pytest.mark.parametrize("record", [(1, 2), (1, 2, 3.0, 4.0), "1,2,3", ("1", 2, 3.0), (1, 2, None), 42])
def test_malformed_records(record: object) -> None:
    with pytest.raises(MalformedRecord):
        build_rating_matrix([record])


def test_errors_share_a_base_class() -> None:
    with pytest.raises(RatingDataError):
        build_rating_matrix([])


def test_matrix_stats(scenario_matrix: RatingMatrix) -> None:
    stats = matrix_stats(scenario_matrix)
    assert stats.num_users == 3
    assert stats.num_items == 2
    assert stats.num_ratings == 5
    assert stats.density == pytest.approx(5 / 6)


def test_matrix_copies_caller_array() -> None:
    raw = np.array([[1.0, 0.0], [0.0, 2.0]])
    matrix = RatingMatrix(values=raw)

    raw[0, 0] = 9.0

    assert raw.flags.writeable
    assert matrix.values[0, 0] == 1.0
    assert not matrix.values.flags.writeable


def test_matrix_identity_semantics(scenario_matrix: RatingMatrix) -> None:
    other = RatingMatrix(values=scenario_matrix.values)
    assert scenario_matrix == scenario_matrix
    assert scenario_matrix != other
    assert len({scenario_matrix, other}) == 2


def test_has_user_rejects_non_integral_ids(scenario_matrix: RatingMatrix) -> None:
    assert scenario_matrix.has_user(3)
    assert scenario_matrix.has_user(np.int64(2))
    assert not scenario_matrix.has_user(1.7)
    assert not scenario_matrix.has_item(True)
    with pytest.raises(KeyError):
        scenario_matrix.get_rating(1.5, 1)
