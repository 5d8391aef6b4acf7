"""
@file hit_metrics.py
@brief ROC curves and area under the curve, written out explicitly.

Labels are 0/1 (1 = Hit) and scores are predicted probabilities of Hit.
Records sharing a score are grouped into one threshold step, so the order of
tied records never changes the curve.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from hit_errors import UndefinedMetricError


@dataclass(frozen=True)
class EvaluationResult:
    """ROC curve points (increasing false-positive rate) and their AUC."""
    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray
    auc: float

    def to_frame(self):
        return pd.DataFrame({
            "threshold": self.thresholds,
            "fpr": self.fpr,
            "tpr": self.tpr,
        })


def _check_inputs(y_true, scores):
    raw = np.asarray(y_true).ravel()
    s = np.asarray(scores, dtype=float).ravel()
    if raw.shape != s.shape:
        raise ValueError(f"{len(raw)} labels but {len(s)} scores")
    if np.isnan(s).any():
        raise ValueError("Scores contain NaN")
    if not np.isin(raw, (0, 1)).all():
        raise ValueError("Labels must be 0 (NoHit) or 1 (Hit)")
    y = raw.astype(int)

    n_pos = int(y.sum())
    n_neg = len(y) - n_pos
    if n_pos == 0 or n_neg == 0:
        raise UndefinedMetricError(
            f"ROC is undefined with {n_pos} hits and {n_neg} non-hits"
        )
    return y, s, n_pos, n_neg


def _roc_counts(y_true, scores):
    """Cumulative (false positives, true positives) per threshold, both starting at 0."""
    y, s, n_pos, n_neg = _check_inputs(y_true, scores)

    order = np.argsort(-s, kind="mergesort")
    s = s[order]
    y = y[order]

    # last index of each run of equal scores
    step_ends = np.r_[np.flatnonzero(np.diff(s)), len(s) - 1]

    tps = np.cumsum(y)[step_ends]
    fps = (step_ends + 1) - tps
    thresholds = np.r_[np.inf, s[step_ends]]
    return np.r_[0, fps], np.r_[0, tps], thresholds, n_pos, n_neg


def _count_auc(fps, tps, n_pos, n_neg):
    # trapezoids summed in integer counts, divided once at the end
    doubled = np.sum(np.diff(fps) * (tps[1:] + tps[:-1]))
    return float(doubled) / (2.0 * n_pos * n_neg)


def roc_curve(y_true, scores):
    """
    @brief Sweep a threshold over every distinct score, highest first.

    @return (fpr, tpr, thresholds)
        The first point is (0, 0) at threshold +inf and the last is (1, 1)
        at the lowest score.

    @throws UndefinedMetricError if the labels hold only one class.
    """
    fps, tps, thresholds, n_pos, n_neg = _roc_counts(y_true, scores)
    return fps / n_neg, tps / n_pos, thresholds


def auc(fpr, tpr):
    """Trapezoidal area under a curve given in increasing x order, clipped to [0, 1]."""
    x = np.asarray(fpr, dtype=float)
    y = np.asarray(tpr, dtype=float)
    area = float(np.sum(np.diff(x) * (y[1:] + y[:-1]) / 2.0))
    return min(max(area, 0.0), 1.0)


def roc_auc(y_true, scores):
    fps, tps, _, n_pos, n_neg = _roc_counts(y_true, scores)
    return _count_auc(fps, tps, n_pos, n_neg)


def rank_auc(y_true, scores):
    """
    @brief Probability that a random hit outscores a random non-hit.

    Mann-Whitney estimator with mid-ranks for ties (a tie counts one half).
    Matches `roc_auc` up to floating-point error.
    """
    y, s, n_pos, n_neg = _check_inputs(y_true, scores)
    ranks = pd.Series(s).rank(method="average").to_numpy()
    pos_rank_sum = ranks[y == 1].sum()
    return float((pos_rank_sum - n_pos * (n_pos + 1) / 2.0) / (n_pos * n_neg))


def evaluate(y_true, scores):
    """Build the full EvaluationResult for one model's predictions."""
    fps, tps, thresholds, n_pos, n_neg = _roc_counts(y_true, scores)
    return EvaluationResult(
        fpr=fps / n_neg,
        tpr=tps / n_pos,
        thresholds=thresholds,
        auc=_count_auc(fps, tps, n_pos, n_neg),
    )
