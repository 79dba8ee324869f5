from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from ubcf.errors import OutOfRange
from ubcf.pipelines.batch_predict import main, run_batch_predict


@pytest.fixture()
def ratings_path(tmp_path: Path) -> Path:
    path = tmp_path / "training_data.csv"
    path.write_text("1,1,5\n1,2,3\n2,1,4\n2,2,3\n3,2,5\n")
    return path


def test_batch_records_failures_and_continues(tmp_path: Path, ratings_path: Path) -> None:
    queries = tmp_path / "queries.csv"
    queries.write_text("1,2\n9,1\n3,1\n")
    out = tmp_path / "out" / "predictions.csv"

    summary = run_batch_predict(ratings_path=ratings_path, queries_path=queries, out_path=out, k=2)

    assert summary.n_queries == 3
    assert summary.n_ok == 2
    assert summary.n_failed == 1

    df = pd.read_csv(out)
    assert df.columns.tolist() == ["line", "userId", "itemId", "k", "prediction", "n_neighbors", "status", "error"]
    assert df["status"].tolist() == ["ok", "out_of_range", "ok"]
    assert round(float(df.loc[0, "prediction"]), 4) == 4.0027
    assert int(df.loc[0, "n_neighbors"]) == 2
    assert pd.isna(df.loc[1, "prediction"])
    assert "userId 9" in str(df.loc[1, "error"])
    # User 3 on item 1: users 1 and 2 both rated it and share item 2 with user 3.
    assert int(df.loc[2, "n_neighbors"]) == 2
    assert float(df.loc[2, "prediction"]) == pytest.approx(4.5)


def test_batch_rejects_non_positive_k(tmp_path: Path, ratings_path: Path) -> None:
    queries = tmp_path / "queries.csv"
    queries.write_text("1,2\n")
    with pytest.raises(OutOfRange):
        run_batch_predict(ratings_path=ratings_path, queries_path=queries, out_path=tmp_path / "o.csv", k=0)


def test_batch_empty_queries(tmp_path: Path, ratings_path: Path) -> None:
    queries = tmp_path / "queries.csv"
    queries.write_text("")
    summary = run_batch_predict(ratings_path=ratings_path, queries_path=queries, out_path=tmp_path / "o.csv", k=3)
    assert summary.n_queries == 0


def test_batch_main_uses_config_defaults(tmp_path: Path) -> None:
    raw = tmp_path / "data" / "raw"
    raw.mkdir(parents=True)
    (raw / "training_data.csv").write_text("1,1,5\n1,2,3\n2,1,4\n2,2,3\n3,2,5\n")
    (tmp_path / "config.yaml").write_text("user_cf:\n  k: 1\n")
    queries = tmp_path / "queries.csv"
    queries.write_text("1,2\n")

    main(["--config", str(tmp_path / "config.yaml"), "--queries", str(queries)])

    df = pd.read_csv(tmp_path / "artifacts" / "predictions" / "predictions.csv")
    assert df["k"].tolist() == [1]
    assert df["prediction"].tolist() == pytest.approx([5.0])


def test_batch_records_malformed_queries_with_line_numbers(tmp_path: Path, ratings_path: Path) -> None:
    queries = tmp_path / "queries.csv"
    queries.write_text("1,2\nabc,1\n\n3,1\n2,1.5\n4,1,1\n")
    out = tmp_path / "predictions.csv"

    summary = run_batch_predict(ratings_path=ratings_path, queries_path=queries, out_path=out, k=2)

    assert summary.n_queries == 5
    assert summary.n_ok == 2
    assert summary.n_failed == 3

    df = pd.read_csv(out)
    assert df["line"].tolist() == [1, 2, 4, 5, 6]
    assert df["status"].tolist() == ["ok", "malformed", "ok", "malformed", "malformed"]
    assert "line 2" in str(df.loc[1, "error"])
    assert pd.isna(df.loc[1, "userId"])
    assert round(float(df.loc[0, "prediction"]), 4) == 4.0027
    assert float(df.loc[2, "prediction"]) == pytest.approx(4.5)
