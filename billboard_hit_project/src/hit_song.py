## @file hit_song.py
## @brief Runs the Billboard Hot-100 hit analysis end to end.
##
## This script loads the Billboard dataset joined with Spotify audio features,
## collapses repeated chart weeks into one record per song, labels songs that
## reached the Top 10 as hits, and trains two classifiers (Logistic Regression
## and Random Forest) to test which audio features are associated with chart
## success. It performs:
##  - loading and column validation,
##  - cleaning, aggregation and plausibility filtering,
##  - global z-score scaling of the audio features,
##  - 10-fold cross-validation of both models on shared folds,
##  - Random Forest tuning over a fixed max_features grid,
##  - ROC / AUC evaluation of both models,
##  - permutation feature importance for the Random Forest.
##
## The script prints:
##  - cleaning diagnostics and class balance,
##  - cross-validated and in-sample AUC per model,
##  - the best forest configuration,
##  - logistic coefficients and ranked forest importances.
##
## Figures are written by `hit_report.save_figures`.

import argparse
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pandas as pd

from hit_config import LABEL_COLUMN, PipelineConfig
from hit_data import clean_songs, load_billboard
from hit_errors import HitAnalysisError, PipelineError
from hit_metrics import evaluate
from hit_models import FOREST, LOGISTIC, MODEL_TITLES, encode_labels, train_models
from hit_scaling import scale_features

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Everything the reporter needs from one run."""
    songs: pd.DataFrame
    scaled: pd.DataFrame
    scaling: object
    cleaning: object
    models: dict
    failures: list
    evaluations: dict
    cv_evaluations: dict = field(default_factory=dict)

    @property
    def importance(self):
        forest = self.models.get(FOREST)
        return None if forest is None else forest.importance


## ============================================================================
## 1. Pipeline stages
## ============================================================================

def analyze_records(records, config=None):
    """
    @brief Run cleaning, scaling, training and evaluation on loaded records.

    @param records
        Chart-week frame as returned by `hit_data.load_billboard`.
    @param config
        `PipelineConfig`; defaults to the full 10-fold run.

    @return PipelineResult
    @throws PipelineError if no songs survive cleaning, only one class is
            left, there are fewer songs than folds, or every model fails.
    """
    config = config or PipelineConfig()

    songs, cleaning = clean_songs(records)
    if songs.empty:
        raise PipelineError("No songs left after cleaning")
    if songs[LABEL_COLUMN].nunique() < 2:
        raise PipelineError(
            f"Need both Hit and NoHit songs, got only '{songs[LABEL_COLUMN].iloc[0]}'"
        )
    if len(songs) < config.n_folds:
        raise PipelineError(
            f"Only {len(songs)} songs left after cleaning, fewer than "
            f"{config.n_folds} cross-validation folds"
        )

    scaled, scaling = scale_features(songs)

    models, failures = train_models(scaled, config)
    if not models:
        raise PipelineError("Every model failed to train")

    y = encode_labels(scaled[LABEL_COLUMN])
    evaluations, cv_evaluations = {}, {}
    for name, model in models.items():
        evaluations[name] = evaluate(y, model.probabilities)
        cv_evaluations[name] = evaluate(y, model.oof_probabilities)
        logger.info(
            f"[{name}] in-sample AUC {evaluations[name].auc:.3f}, "
            f"out-of-fold AUC {cv_evaluations[name].auc:.3f}"
        )

    return PipelineResult(
        songs=songs,
        scaled=scaled,
        scaling=scaling,
        cleaning=cleaning,
        models=models,
        failures=failures,
        evaluations=evaluations,
        cv_evaluations=cv_evaluations,
    )


def run_pipeline(data_path, config=None):
    """Load the CSV at `data_path` and analyse it."""
    return analyze_records(load_billboard(data_path), config)


## ============================================================================
## 2. Console summary
## ============================================================================

def print_summary(result):
    """
    @brief Print the class balance and a compact model comparison.
    """
    report = result.cleaning
    print("\nTotal chart-week records:", report.raw_rows)
    print("Dropped (missing audio features):", report.missing_feature_rows)
    print("Unique songs:", report.aggregated_songs)
    print("Dropped (implausible values):", report.implausible_songs)

    print("\nClass balance:")
    print(result.songs[LABEL_COLUMN].value_counts().to_string())
    print(f"Hit share: {report.hit_share:.3f}")

    print("\n=== Model comparison ===")
    for name, model in result.models.items():
        title = MODEL_TITLES.get(name, name)
        cv = "undefined" if model.cv_auc is None else f"{model.cv_auc:.3f}"
        print(f"{title:<14} CV AUC: {cv}   in-sample AUC: {result.evaluations[name].auc:.3f}")
        if model.degenerate_folds:
            print(f"{'':<14} ({len(model.degenerate_folds)} degenerate folds excluded)")
    for failure in result.failures:
        print(f"{MODEL_TITLES.get(failure.name, failure.name):<14} FAILED: {failure.error}")

    logit = result.models.get(LOGISTIC)
    if logit is not None:
        print("\n=== Logistic Regression: feature effects (scaled space) ===")
        print(logit.coefficients.to_string(index=False))

    forest = result.models.get(FOREST)
    if forest is not None:
        print("\n[Random Forest] Best params:", forest.params)
        print("\n=== Random Forest: permutation importance (AUC drop) ===")
        print(forest.importance.to_string(index=False))

    if result.scaling.zero_variance:
        print("\nZero-variance features (scaled to 0):", ", ".join(result.scaling.zero_variance))


## ============================================================================
## 3. Command line entry point
## ============================================================================

def setup_logging(log_dir="logging"):
    """Configure logging to a timestamped file and the console."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"hit_analysis_{timestamp}.log"

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )
    logger.info(f"Logging to {log_file}")
    return log_file


def main(argv=None):
    """Run the whole Billboard hit analysis."""
    parser = argparse.ArgumentParser(
        description="Test which Spotify audio features are associated with Billboard Top-10 hits",
    )
    parser.add_argument(
        "--data",
        default="data/BillboardDataset.csv",
        help="Billboard + Spotify CSV (default: data/BillboardDataset.csv)",
    )
    parser.add_argument(
        "--figures-dir",
        default="figures",
        help="Directory for the PNG figures (default: figures)",
    )
    parser.add_argument(
        "--log-dir",
        default="logging",
        help="Directory for the run log (default: logging)",
    )
    args = parser.parse_args(argv)
    setup_logging(args.log_dir)

    start_time = datetime.now()
    logger.info(f"Starting analysis of {args.data}")

    try:
        result = run_pipeline(args.data)
    except HitAnalysisError as e:
        logger.error(f"Analysis aborted: {e}")
        return 1

    print_summary(result)

    # imported here so the pipeline itself never needs a plotting backend;
    # the CLI only writes files, so it pins the non-interactive one
    import matplotlib
    matplotlib.use("Agg")
    from hit_report import save_figures
    written = save_figures(result, args.figures_dir)
    print(f"\n{len(written)} figures written to '{args.figures_dir}'")

    logger.info(f"Analysis complete! Total time: {datetime.now() - start_time}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
