import numpy as np
import pandas as pd
import pytest

from hit_config import AUDIO_FEATURES
from hit_data import clean_songs
from hit_scaling import fit_scaler, scale_features


def test_scaled_features_have_zero_mean_unit_variance(records):
    songs, _ = clean_songs(records)
    scaled, stats = scale_features(songs)

    for feature in AUDIO_FEATURES:
        assert scaled[feature].mean() == pytest.approx(0.0, abs=1e-12)
        assert scaled[feature].std(ddof=1) == pytest.approx(1.0)
    assert stats.zero_variance == ()


def test_scaling_round_trip(records):
    songs, _ = clean_songs(records)
    scaled, stats = scale_features(songs)
    restored = stats.inverse_transform(scaled)

    np.testing.assert_allclose(
        restored[list(AUDIO_FEATURES)].to_numpy(),
        songs[list(AUDIO_FEATURES)].to_numpy(),
        rtol=1e-10, atol=1e-10,
    )


def test_scaling_leaves_input_and_other_columns_alone(records):
    songs, _ = clean_songs(records)
    before = songs.copy()
    scaled, _ = scale_features(songs)

    pd.testing.assert_frame_equal(songs, before)
    assert scaled["song"].tolist() == songs["song"].tolist()
    assert scaled["hit"].tolist() == songs["hit"].tolist()


def test_constant_feature_falls_back_to_zero(caplog):
    songs = pd.DataFrame({
        "tempo": [120.0, 120.0, 120.0],
        "energy": [0.1, 0.5, 0.9],
    })
    stats = fit_scaler(songs, features=("tempo", "energy"))
    scaled = stats.transform(songs)

    assert stats.zero_variance == ("tempo",)
    assert scaled["tempo"].tolist() == [0.0, 0.0, 0.0]
    assert scaled["energy"].tolist() == pytest.approx([-1.0, 0.0, 1.0])
    assert "tempo" in caplog.text

    restored = stats.inverse_transform(scaled)
    assert restored["tempo"].tolist() == [120.0, 120.0, 120.0]


def test_single_song_is_zero_variance():
    songs = pd.DataFrame({"valence": [0.4]})
    stats = fit_scaler(songs, features=("valence",))
    assert stats.zero_variance == ("valence",)
    assert stats.transform(songs)["valence"].tolist() == [0.0]


def test_stats_table():
    songs = pd.DataFrame({"loudness": [-10.0, -6.0, -2.0]})
    table = fit_scaler(songs, features=("loudness",)).to_frame()
    assert table.loc[0, "mean"] == pytest.approx(-6.0)
    assert table.loc[0, "std"] == pytest.approx(4.0)
    assert not table.loc[0, "zero_variance"]
