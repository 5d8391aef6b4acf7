"""
@file hit_config.py
@brief Column names, constants and run settings for the Billboard hit analysis.

Everything the pipeline needs to know about the dataset layout lives here, so
the other modules never hard-code a column name.
"""

from dataclasses import dataclass


# -------------------------------------------------------------------
# 1. Dataset layout
# -------------------------------------------------------------------

## Spotify audio features used throughout the analysis (order matters:
## it is the column order of every feature matrix).
AUDIO_FEATURES = (
    "danceability", "energy", "loudness", "speechiness",
    "acousticness", "instrumentalness",
    "liveness", "valence", "tempo",
)

## Columns the raw Billboard file must provide.
REQUIRED_COLUMNS = (
    "song", "band_singer", "ranking", "year", "lyrics",
    *AUDIO_FEATURES,
    "duration_ms",
)

## Source column -> pipeline column.
COLUMN_RENAMES = {
    "band_singer": "artist",
    "ranking": "rank",
}

NUMERIC_COLUMNS = ("rank", "year", *AUDIO_FEATURES, "duration_ms")

SONG_KEY = ["song", "artist"]

LABEL_COLUMN = "hit"
HIT = "Hit"
NO_HIT = "NoHit"

## Songs peaking at or above this chart position are hits. Fixed on purpose.
HIT_RANK_CUTOFF = 10

## Features bounded to [0, 1] by the plausibility filter.
UNIT_INTERVAL_FEATURES = ("danceability", "energy")

RANDOM_SEED = 123


# -------------------------------------------------------------------
# 2. Run settings
# -------------------------------------------------------------------

@dataclass(frozen=True)
class PipelineConfig:
    """
    @brief Knobs for the modelling stage.

    Defaults: 10-fold CV seeded with 123, and a forest tuned over five
    `max_features` candidates.
    """
    n_folds: int = 10
    seed: int = RANDOM_SEED
    rf_max_features_grid: tuple = (2, 3, 5, 7, 9)
    rf_n_estimators: int = 500
    n_jobs: int = 1
    permutation_repeats: int = 10
    logit_max_iter: int = 1000
    features: tuple = AUDIO_FEATURES

    def __post_init__(self):
        if self.n_folds < 2:
            raise ValueError("n_folds must be at least 2")
        if not self.rf_max_features_grid:
            raise ValueError("rf_max_features_grid must not be empty")
        unknown = [f for f in self.features if f not in AUDIO_FEATURES]
        if unknown:
            raise ValueError(f"Unknown audio features: {unknown}")
