"""
@file hit_scaling.py
@brief Z-score scaling of the audio features over the cleaned song population.

Statistics are computed once, on every cleaned song, before any model is fit,
and the same statistics are reused for every fold. A feature with zero (or
undefined) spread cannot be standardised: its scaled values are all 0.0 and
the feature is reported in `ScalingStats.zero_variance`.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from hit_config import AUDIO_FEATURES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScalingStats:
    """Per-feature mean and sample standard deviation."""
    means: dict
    stds: dict
    zero_variance: tuple = ()

    @property
    def features(self):
        return tuple(self.means)

    def transform(self, frame):
        """Return a copy of `frame` with each known feature replaced by its z-score."""
        scaled = frame.copy()
        for feature in self.features:
            if feature in self.zero_variance:
                scaled[feature] = 0.0
            else:
                scaled[feature] = (frame[feature] - self.means[feature]) / self.stds[feature]
        return scaled

    def inverse_transform(self, frame):
        """Undo `transform`. Zero-variance features come back as their mean."""
        restored = frame.copy()
        for feature in self.features:
            if feature in self.zero_variance:
                restored[feature] = float(self.means[feature])
            else:
                restored[feature] = frame[feature] * self.stds[feature] + self.means[feature]
        return restored

    def to_frame(self):
        return pd.DataFrame({
            "feature": list(self.features),
            "mean": [self.means[f] for f in self.features],
            "std": [self.stds[f] for f in self.features],
            "zero_variance": [f in self.zero_variance for f in self.features],
        })


def fit_scaler(songs, features=AUDIO_FEATURES):
    """
    @brief Compute the scaling statistics of each feature.

    Uses the sample standard deviation (ddof=1). A standard deviation that
    is zero or not finite (fewer than two songs) marks the feature as
    zero-variance.
    """
    means, stds, flat = {}, {}, []
    for feature in features:
        values = songs[feature].to_numpy(dtype=float)
        mean = float(np.mean(values)) if len(values) else float("nan")
        std = float(np.std(values, ddof=1)) if len(values) > 1 else float("nan")
        if not np.isfinite(std) or std == 0.0:
            logger.warning(
                f"Feature '{feature}' has no spread; scaled values fall back to 0.0"
            )
            flat.append(feature)
        means[feature] = mean
        stds[feature] = std
    return ScalingStats(means=means, stds=stds, zero_variance=tuple(flat))


def scale_features(songs, features=AUDIO_FEATURES):
    """Fit on `songs` and return (scaled copy, ScalingStats)."""
    stats = fit_scaler(songs, features)
    return stats.transform(songs), stats
