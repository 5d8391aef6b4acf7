"""
@file hit_models.py
@brief Trains the two hit classifiers under k-fold cross-validation.

Two models are compared on the same folds:
  - Logistic Regression over the scaled audio features (baseline),
  - Random Forest, tuned over a small fixed `max_features` grid.

Model selection uses ROC AUC rather than accuracy, because hits are a small
minority and a model that always says "NoHit" would look accurate.

Each model returns a `ModelArtifact` holding:
  - the estimator refit on every song and its in-sample Hit probabilities,
  - the out-of-fold probabilities and the per-fold AUCs,
  - coefficients (logistic) or permutation importance (forest).
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import ConvergenceWarning
from sklearn.inspection import permutation_importance
from sklearn.linear_model import LogisticRegression

from hit_config import HIT, LABEL_COLUMN
from hit_errors import UndefinedMetricError
from hit_metrics import roc_auc

logger = logging.getLogger(__name__)

LOGISTIC = "logistic"
FOREST = "random_forest"

MODEL_TITLES = {
    LOGISTIC: "Logistic",
    FOREST: "Random Forest",
}


@dataclass(frozen=True)
class FoldResult:
    """Outcome of one held-out fold. `auc` is None when the fold is degenerate."""
    index: int
    n_test: int
    n_hits: int
    auc: Optional[float]
    degenerate: Optional[str] = None


@dataclass(frozen=True)
class ModelArtifact:
    name: str
    estimator: object
    features: tuple
    probabilities: np.ndarray
    oof_probabilities: np.ndarray
    folds: tuple
    cv_auc: Optional[float]
    params: dict = field(default_factory=dict)
    importance: Optional[pd.DataFrame] = None
    coefficients: Optional[pd.DataFrame] = None
    tuning: Optional[pd.DataFrame] = None

    @property
    def degenerate_folds(self):
        return tuple(f for f in self.folds if f.degenerate)


@dataclass(frozen=True)
class ModelFailure:
    """A model that could not be trained; the rest of the run carries on."""
    name: str
    error: str


# -------------------------------------------------------------------
# 1. Shared helpers
# -------------------------------------------------------------------

def encode_labels(labels):
    """Hit -> 1, NoHit -> 0."""
    return (np.asarray(labels) == HIT).astype(int)


def feature_matrix(songs, features):
    return songs.loc[:, list(features)].to_numpy(dtype=float)


def make_folds(n_records, n_folds, seed):
    """
    @brief Split record indices into `n_folds` shuffled, disjoint folds.

    Every index appears in exactly one fold and the split depends only on
    (n_records, n_folds, seed), so both models see identical folds.
    """
    if n_records < n_folds:
        raise ValueError(
            f"Cannot build {n_folds} folds from {n_records} records"
        )
    rng = np.random.default_rng(seed)
    order = rng.permutation(n_records)
    return [np.sort(part) for part in np.array_split(order, n_folds)]


def positive_proba(estimator, X):
    """Probability of Hit, even if the estimator only ever saw one class."""
    classes = list(estimator.classes_)
    if 1 not in classes:
        return np.zeros(len(X))
    return estimator.predict_proba(X)[:, classes.index(1)]


def fit_estimator(make_estimator, X, y):
    # a non-converged fit is reported as a failure, not silently used
    estimator = make_estimator()
    with warnings.catch_warnings():
        warnings.simplefilter("error", ConvergenceWarning)
        estimator.fit(X, y)
    return estimator


def cross_validate_model(make_estimator, X, y, folds, name="model"):
    """
    @brief Fit on all folds but one, predict the held-out fold, repeat.

    Folds whose test part holds a single class have no defined AUC: they are
    flagged and left out of the mean rather than counted as 0 or 1.
    A training split with a single class predicts that class for its fold.

    @return (oof_probabilities, tuple of FoldResult, mean AUC or None)
    """
    oof = np.zeros(len(y), dtype=float)
    results = []

    for i, test_idx in enumerate(folds):
        train_mask = np.ones(len(y), dtype=bool)
        train_mask[test_idx] = False
        y_train, y_test = y[train_mask], y[test_idx]
        n_hits = int(y_test.sum())

        if np.unique(y_train).size < 2:
            reason = "single-class training split"
            logger.warning(f"[{name}] fold {i + 1}: {reason}, predicting the constant class")
            oof[test_idx] = float(y_train[0])
            results.append(FoldResult(i, len(test_idx), n_hits, None, reason))
            continue

        estimator = fit_estimator(make_estimator, X[train_mask], y_train)
        oof[test_idx] = positive_proba(estimator, X[test_idx])

        try:
            fold_auc = roc_auc(y_test, oof[test_idx])
            reason = None
        except UndefinedMetricError:
            fold_auc = None
            reason = "single-class test fold"
            logger.warning(f"[{name}] fold {i + 1}: {reason}, AUC undefined")

        results.append(FoldResult(i, len(test_idx), n_hits, fold_auc, reason))

    scored = [r.auc for r in results if r.auc is not None]
    if not scored:
        logger.warning(f"[{name}] no fold had both classes; CV AUC undefined")
        return oof, tuple(results), None
    return oof, tuple(results), float(np.mean(scored))


# -------------------------------------------------------------------
# 2. Logistic Regression (baseline)
# -------------------------------------------------------------------

def train_logistic(songs, config, folds):
    """
    @brief Cross-validate and fit the logistic baseline.

    Coefficients live in the scaled feature space: positive values raise
    the hit probability, negative values lower it.
    """
    features = tuple(config.features)
    X = feature_matrix(songs, features)
    y = encode_labels(songs[LABEL_COLUMN])

    def make_logit():
        return LogisticRegression(max_iter=config.logit_max_iter)

    oof, fold_results, cv_auc = cross_validate_model(make_logit, X, y, folds, LOGISTIC)
    final = fit_estimator(make_logit, X, y)

    coefficients = pd.DataFrame({
        "feature": list(features),
        "coef": final.coef_[0],
    }).sort_values("coef", ascending=False).reset_index(drop=True)

    logger.info(f"[{LOGISTIC}] CV AUC: {_fmt(cv_auc)}")
    return ModelArtifact(
        name=LOGISTIC,
        estimator=final,
        features=features,
        probabilities=positive_proba(final, X),
        oof_probabilities=oof,
        folds=fold_results,
        cv_auc=cv_auc,
        params={"max_iter": config.logit_max_iter},
        coefficients=coefficients,
    )


# -------------------------------------------------------------------
# 3. Random Forest with a fixed tuning grid
# -------------------------------------------------------------------

def _forest_factory(max_features, config):
    def make_forest():
        return RandomForestClassifier(
            n_estimators=config.rf_n_estimators,
            max_features=max_features,
            random_state=config.seed,
            n_jobs=config.n_jobs,
        )
    return make_forest


def train_forest(songs, config, folds):
    """
    @brief Tune `max_features` by CV AUC, then refit the winner on every song.

    Grid values larger than the number of features are clipped and
    de-duplicated. Ties go to the earlier grid value.
    """
    features = tuple(config.features)
    X = feature_matrix(songs, features)
    y = encode_labels(songs[LABEL_COLUMN])

    grid = list(dict.fromkeys(min(m, len(features)) for m in config.rf_max_features_grid))

    rows = []
    best = None
    for max_features in grid:
        oof, fold_results, cv_auc = cross_validate_model(
            _forest_factory(max_features, config), X, y, folds, FOREST
        )
        logger.info(f"[{FOREST}] max_features={max_features}: CV AUC {_fmt(cv_auc)}")
        rows.append({
            "max_features": max_features,
            "cv_auc": cv_auc,
            "degenerate_folds": sum(1 for r in fold_results if r.degenerate),
        })
        if best is None or (cv_auc is not None and (best[2] is None or cv_auc > best[2])):
            best = (max_features, oof, cv_auc, fold_results)

    best_max_features, oof, cv_auc, fold_results = best
    final = fit_estimator(_forest_factory(best_max_features, config), X, y)

    return ModelArtifact(
        name=FOREST,
        estimator=final,
        features=features,
        probabilities=positive_proba(final, X),
        oof_probabilities=oof,
        folds=fold_results,
        cv_auc=cv_auc,
        params={"max_features": best_max_features, "n_estimators": config.rf_n_estimators},
        importance=importance_table(final, X, y, features, config),
        tuning=pd.DataFrame(rows),
    )


def _auc_scorer(estimator, X, y):
    return roc_auc(y, positive_proba(estimator, X))


def importance_table(estimator, X, y, features, config):
    """
    @brief Rank features by permutation importance.

    Each feature is shuffled `config.permutation_repeats` times and the drop
    in AUC is averaged. `scaled` maps the importances onto 0-100.

    @return pandas.DataFrame with columns feature, importance,
            importance_std, scaled; most important first.
    """
    perm = permutation_importance(
        estimator, X, y,
        scoring=_auc_scorer,
        n_repeats=config.permutation_repeats,
        random_state=config.seed,
    )
    imp = perm.importances_mean
    spread = imp.max() - imp.min()
    scaled = 100.0 * (imp - imp.min()) / spread if spread > 0 else np.zeros_like(imp)

    table = pd.DataFrame({
        "feature": list(features),
        "importance": imp,
        "importance_std": perm.importances_std,
        "scaled": scaled,
    })
    return table.sort_values("importance", ascending=False, kind="mergesort").reset_index(drop=True)


# -------------------------------------------------------------------
# 4. Train both models
# -------------------------------------------------------------------

TRAINERS = (
    (LOGISTIC, train_logistic),
    (FOREST, train_forest),
)


def train_models(songs, config, trainers=TRAINERS):
    """
    @brief Train every model on the same folds.

    A model that raises is logged and returned as a `ModelFailure`; the
    others still run.

    @return (dict name -> ModelArtifact, list of ModelFailure)
    """
    folds = make_folds(len(songs), config.n_folds, config.seed)
    models, failures = {}, []

    for name, trainer in trainers:
        logger.info(f"Training {name} with {config.n_folds}-fold CV on {len(songs)} songs")
        try:
            models[name] = trainer(songs, config, folds)
        except Exception as e:
            logger.error(f"[{name}] training failed: {e}")
            failures.append(ModelFailure(name=name, error=str(e)))

    return models, failures


def _fmt(value):
    return "undefined" if value is None else f"{value:.3f}"
