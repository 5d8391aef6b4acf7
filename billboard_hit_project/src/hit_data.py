"""
@file hit_data.py
@brief Loads the Billboard Hot-100 / Spotify dataset and cleans it into one row per song.

This module:
  - Reads the raw CSV and keeps only the columns the analysis needs.
  - Drops chart weeks with missing audio features.
  - Collapses repeated chart weeks of the same (song, artist) into one record.
  - Labels each song Hit / NoHit from its best chart position.
  - Removes songs with implausible audio feature values.

No function here modifies the frame it is given; each returns a new one.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from hit_config import (
    AUDIO_FEATURES, COLUMN_RENAMES, HIT, HIT_RANK_CUTOFF, LABEL_COLUMN,
    NO_HIT, NUMERIC_COLUMNS, REQUIRED_COLUMNS, SONG_KEY,
    UNIT_INTERVAL_FEATURES,
)
from hit_errors import DatasetFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleaningReport:
    """Row counts collected while cleaning, for diagnostics."""
    raw_rows: int
    missing_feature_rows: int
    aggregated_songs: int
    implausible_songs: int
    final_songs: int
    hits: int

    @property
    def hit_share(self):
        return self.hits / self.final_songs if self.final_songs else 0.0


# -------------------------------------------------------------------
# 1. Loading
# -------------------------------------------------------------------

def load_billboard(path):
    """
    @brief Read the raw Billboard CSV and return the analysis columns.

    @param path
        Path to a UTF-8 delimited file with the columns listed in
        `hit_config.REQUIRED_COLUMNS`.

    @return pandas.DataFrame
        One row per (song, chart week), source order preserved, with
        `band_singer` / `ranking` renamed to `artist` / `rank`.

    @throws DatasetFormatError
        If the file cannot be parsed or a required column is missing or
        holds non-numeric values where numbers are expected.
    """
    logger.info(f"Loading Billboard dataset from {path}")
    try:
        raw = pd.read_csv(path, encoding="utf-8")
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DatasetFormatError(f"Could not parse {path}: {e}") from e

    records = select_columns(raw)
    logger.info(f"Loaded {len(records)} chart-week records")
    return records


def select_columns(raw):
    """
    @brief Validate a raw frame, keep the needed columns and rename them.

    @throws DatasetFormatError on missing columns or unparseable numbers.
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in raw.columns]
    if missing:
        raise DatasetFormatError(f"Dataset is missing required columns: {missing}")

    records = raw.loc[:, list(REQUIRED_COLUMNS)].rename(columns=COLUMN_RENAMES)

    for col in NUMERIC_COLUMNS:
        parsed = pd.to_numeric(records[col], errors="coerce")
        bad = parsed.isna() & records[col].notna()
        if bad.any():
            examples = records.loc[bad, col].astype(str).unique()[:3].tolist()
            raise DatasetFormatError(
                f"Column '{col}' has non-numeric values, e.g. {examples}"
            )
        records[col] = parsed

    return records.reset_index(drop=True)


# -------------------------------------------------------------------
# 2. Cleaning and aggregation
# -------------------------------------------------------------------

def drop_incomplete(records, features=AUDIO_FEATURES):
    """Remove records missing any audio feature. Returns (frame, n_dropped)."""
    kept = records.dropna(subset=list(features)).reset_index(drop=True)
    return kept, len(records) - len(kept)


def _first_in_order(values):
    # pandas' "first" skips missing values; the first record wins even if empty
    return values.iloc[0]


def aggregate_songs(records, features=AUDIO_FEATURES):
    """
    @brief Collapse repeated chart weeks into one row per (song, artist).

    For each group the best (lowest) rank and the earliest year are kept,
    the lyrics come from the first record in source order, and each audio
    feature is averaged over every chart week.

    Grouping is exact and case-sensitive. Running this on its own output
    returns the same frame.

    @return pandas.DataFrame sorted by (song, artist)
    """
    spec = {
        "rank": ("rank", "min"),
        "year": ("year", "min"),
        "lyrics": ("lyrics", _first_in_order),
    }
    for feature in features:
        spec[feature] = (feature, "mean")

    if records.empty:
        return records.loc[:, SONG_KEY + list(spec)].reset_index(drop=True)

    songs = (
        records
        .groupby(SONG_KEY, sort=True, dropna=False)
        .agg(**spec)
        .reset_index()
    )
    return songs


def label_hits(songs):
    """Add the Hit / NoHit label: Hit iff the song peaked at rank 10 or better."""
    labelled = songs.copy()
    labelled[LABEL_COLUMN] = np.where(
        labelled["rank"] <= HIT_RANK_CUTOFF, HIT, NO_HIT
    )
    return labelled


def plausible_mask(songs):
    """Boolean mask of songs whose tempo is positive and unit features lie in [0, 1]."""
    mask = songs["tempo"] > 0
    for feature in UNIT_INTERVAL_FEATURES:
        mask &= songs[feature].between(0, 1)
    return mask


def filter_plausible(songs):
    """Drop songs failing the plausibility gate. Returns (frame, n_dropped)."""
    mask = plausible_mask(songs)
    kept = songs.loc[mask].reset_index(drop=True)
    return kept, int((~mask).sum())


def clean_songs(records, features=AUDIO_FEATURES):
    """
    @brief Run the whole cleaning stage on loaded chart-week records.

    Steps:
      1. Drop records missing any of the nine audio features.
      2. Aggregate to one row per (song, artist).
      3. Derive the Hit / NoHit label.
      4. Drop songs with implausible tempo, danceability or energy.

    @return (pandas.DataFrame, CleaningReport)
    """
    complete, n_missing = drop_incomplete(records, features)
    if n_missing:
        logger.info(f"Dropped {n_missing} records with missing audio features")

    songs = aggregate_songs(complete, features)
    n_songs = len(songs)
    logger.info(f"Collapsed {len(complete)} chart weeks into {n_songs} songs")

    cleaned, n_implausible = filter_plausible(label_hits(songs))
    if n_implausible:
        logger.info(f"Dropped {n_implausible} songs failing the plausibility filter")

    report = CleaningReport(
        raw_rows=len(records),
        missing_feature_rows=n_missing,
        aggregated_songs=n_songs,
        implausible_songs=n_implausible,
        final_songs=len(cleaned),
        hits=int((cleaned[LABEL_COLUMN] == HIT).sum()),
    )
    logger.info(
        f"Clean dataset: {report.final_songs} songs, {report.hits} hits "
        f"({report.hit_share:.1%})"
    )
    return cleaned, report


# -------------------------------------------------------------------
# 3. Yearly summaries (used by the reporter)
# -------------------------------------------------------------------

def hit_rate_by_year(songs):
    """Share of songs labelled Hit, per first chart year."""
    is_hit = (songs[LABEL_COLUMN] == HIT).astype(float)
    rates = is_hit.groupby(songs["year"]).mean()
    return rates.rename("hit_rate").reset_index()


def feature_by_year(songs, feature):
    """Mean of one audio feature per first chart year."""
    means = songs.groupby("year")[feature].mean()
    return means.reset_index()
