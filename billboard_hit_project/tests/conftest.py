import numpy as np
import pandas as pd
import pytest

from hit_config import AUDIO_FEATURES, PipelineConfig


def random_features(rng, n):
    """Plausible Spotify audio features for n rows."""
    return {
        "danceability": rng.uniform(0.2, 0.9, n),
        "energy": rng.uniform(0.1, 1.0, n),
        "loudness": rng.uniform(-20, -2, n),
        "speechiness": rng.uniform(0.02, 0.4, n),
        "acousticness": rng.uniform(0.0, 0.9, n),
        "instrumentalness": rng.uniform(0.0, 0.3, n),
        "liveness": rng.uniform(0.05, 0.6, n),
        "valence": rng.uniform(0.1, 0.95, n),
        "tempo": rng.uniform(70, 180, n),
    }


def build_raw_frame(n_songs=60, weeks=3, seed=7):
    """
    Raw Billboard-style frame (source column names) with `weeks` chart weeks
    per song. Song i peaks at rank i + 1, so the first ten songs are hits.
    """
    rng = np.random.default_rng(seed)
    rows = []
    for i in range(n_songs):
        base = {k: v[0] for k, v in random_features(rng, 1).items()}
        for week in range(weeks):
            row = {
                "song": f"Song {i:03d}",
                "band_singer": f"Artist {i % 17}",
                "ranking": i + 1 + 5 * week,
                "year": 1970 + (i % 30) + week // 2,
                "lyrics": f"la la {i} week {week}",
                "duration_ms": 200000 + 1000 * week,
            }
            for feature in AUDIO_FEATURES:
                row[feature] = base[feature] * (1 + 0.01 * week)
            row["danceability"] = min(row["danceability"], 1.0)
            row["energy"] = min(row["energy"], 1.0)
            rows.append(row)
    return pd.DataFrame(rows)


@pytest.fixture
def raw_frame():
    return build_raw_frame()


@pytest.fixture
def records(raw_frame):
    from hit_data import select_columns
    return select_columns(raw_frame)


@pytest.fixture
def small_config():
    return PipelineConfig(
        n_folds=3,
        rf_n_estimators=25,
        rf_max_features_grid=(2, 3),
        permutation_repeats=2,
    )


@pytest.fixture
def billboard_csv(tmp_path, raw_frame):
    path = tmp_path / "BillboardDataset.csv"
    raw_frame.to_csv(path, index=False, encoding="utf-8")
    return path
