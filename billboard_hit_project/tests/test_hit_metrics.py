import numpy as np
import pytest

from hit_errors import UndefinedMetricError
from hit_metrics import auc, evaluate, rank_auc, roc_auc, roc_curve


def test_perfect_ranking_scores_one():
    y = [1, 1, 0, 0, 0]
    scores = [0.9, 0.8, 0.3, 0.2, 0.1]
    assert roc_auc(y, scores) == pytest.approx(1.0)
    assert rank_auc(y, scores) == pytest.approx(1.0)


def test_reversed_ranking_scores_zero():
    assert roc_auc([1, 0, 0], [0.1, 0.5, 0.9]) == pytest.approx(0.0)


def test_constant_scores_score_one_half():
    y = [1, 0, 0, 1, 0, 0, 0]
    scores = [0.3] * len(y)

    fpr, tpr, thresholds = roc_curve(y, scores)
    assert fpr.tolist() == [0.0, 1.0]
    assert tpr.tolist() == [0.0, 1.0]
    assert roc_auc(y, scores) == pytest.approx(0.5)
    assert rank_auc(y, scores) == pytest.approx(0.5)


def test_curve_runs_from_origin_to_one_one():
    rng = np.random.default_rng(3)
    for _ in range(20):
        y = rng.integers(0, 2, 30)
        y[:2] = [0, 1]
        scores = rng.random(30)
        fpr, tpr, thresholds = roc_curve(y, scores)

        assert (fpr[0], tpr[0]) == (0.0, 0.0)
        assert (fpr[-1], tpr[-1]) == (1.0, 1.0)
        assert np.all(np.diff(fpr) >= 0)
        assert np.all(np.diff(tpr) >= 0)
        assert thresholds[0] == np.inf
        assert np.all(np.diff(thresholds[1:]) < 0)


def test_tied_scores_share_one_step():
    fpr_a, tpr_a, _ = roc_curve([1, 0, 0], [0.5, 0.5, 0.1])
    fpr_b, tpr_b, _ = roc_curve([0, 1, 0], [0.5, 0.5, 0.1])

    np.testing.assert_array_equal(fpr_a, fpr_b)
    np.testing.assert_array_equal(tpr_a, tpr_b)
    assert len(fpr_a) == 3
    assert auc(fpr_a, tpr_a) == pytest.approx(0.75)


def test_rank_estimator_matches_trapezoid_with_ties():
    rng = np.random.default_rng(11)
    y = rng.integers(0, 2, 200)
    scores = np.round(rng.random(200), 1)  # many ties
    assert roc_auc(y, scores) == pytest.approx(rank_auc(y, scores), abs=1e-12)


def test_auc_is_bounded():
    rng = np.random.default_rng(5)
    for _ in range(20):
        y = rng.integers(0, 2, 15)
        y[:2] = [1, 0]
        value = roc_auc(y, rng.random(15))
        assert 0.0 <= value <= 1.0


@pytest.mark.parametrize("labels", [[1, 1, 1], [0, 0, 0, 0]])
def test_single_class_is_undefined(labels):
    with pytest.raises(UndefinedMetricError):
        roc_curve(labels, np.linspace(0, 1, len(labels)))
    with pytest.raises(UndefinedMetricError):
        rank_auc(labels, np.linspace(0, 1, len(labels)))


def test_mismatched_lengths_are_rejected():
    with pytest.raises(ValueError):
        roc_curve([0, 1], [0.2])


def test_evaluate_bundles_curve_and_area():
    result = evaluate([0, 0, 1, 1], [0.1, 0.4, 0.35, 0.8])
    assert result.auc == pytest.approx(0.75)
    table = result.to_frame()
    assert list(table.columns) == ["threshold", "fpr", "tpr"]
    assert len(table) == len(result.fpr)


def test_perfect_separation_never_exceeds_one():
    rng = np.random.default_rng(9)
    hits = rng.uniform(0.6, 1.0, 50)
    misses = rng.uniform(0.0, 0.4, 50)
    y = np.r_[np.ones(50), np.zeros(50)]
    scores = np.r_[hits, misses]

    result = evaluate(y, scores)
    assert result.auc <= 1.0
    assert result.auc == 1.0
    assert roc_auc(y, scores) == 1.0
    assert auc(result.fpr, result.tpr) <= 1.0


def test_trapezoid_is_clipped_to_unit_range():
    assert auc([0.0, 1.0], [1.0, 1.0000000001]) == 1.0
    assert auc([0.0, 1.0], [0.0, -1e-12]) == 0.0


@pytest.mark.parametrize("labels", [[0.7, 1, 0], [2, 1, 0], [-1, 1, 0]])
def test_labels_outside_zero_one_are_rejected(labels):
    with pytest.raises(ValueError, match="Labels"):
        roc_curve(labels, [0.2, 0.9, 0.1])
