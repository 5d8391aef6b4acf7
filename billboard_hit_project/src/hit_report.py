"""
@file hit_report.py
@brief Figures for the Billboard hit analysis.

Reads a `hit_song.PipelineResult` and writes PNG files:
  - ROC curves of both models with their AUC,
  - Random Forest permutation importance,
  - correlation heatmap of the scaled audio features,
  - danceability vs energy coloured by Hit / NoHit,
  - share of hits per year and mean speechiness per year, each with a
    LOWESS trend line.

Nothing here feeds back into the models.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap
from statsmodels.nonparametric.smoothers_lowess import lowess

from hit_config import AUDIO_FEATURES, HIT, LABEL_COLUMN, NO_HIT
from hit_data import feature_by_year, hit_rate_by_year
from hit_models import FOREST, LOGISTIC, MODEL_TITLES

logger = logging.getLogger(__name__)

HIT_COLOR = "#C8553D"
NO_HIT_COLOR = "#2A9D8F"
TREND_COLOR = "#E76F51"
SPEECH_COLOR = "#5A4FCF"
MODEL_COLORS = {LOGISTIC: "blue", FOREST: "red"}

CORRELATION_CMAP = LinearSegmentedColormap.from_list(
    "billboard_diverging", ["#457B9D", "#F1FAEE", "#E76F51"]
)


def correlation_matrix(scaled, features=AUDIO_FEATURES):
    """Pairwise Pearson correlations of the audio features."""
    return scaled.loc[:, list(features)].corr()


# -------------------------------------------------------------------
# 1. Model figures
# -------------------------------------------------------------------

def plot_roc(evaluations, path):
    fig, ax = plt.subplots(figsize=(6, 6))
    for name, result in evaluations.items():
        ax.plot(
            result.fpr, result.tpr,
            color=MODEL_COLORS.get(name),
            lw=2,
            label=f"{MODEL_TITLES.get(name, name)} AUC = {result.auc:.3f}",
        )
    ax.plot([0, 1], [0, 1], "k--", label="Random")
    ax.set_xlabel("False Positive Rate")
    ax.set_ylabel("True Positive Rate")
    ax.set_title("ROC Curve Comparison")
    ax.legend(loc="lower right", frameon=False)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def plot_importance(importance, path, top=10):
    top_imp = importance.head(top).iloc[::-1]  # largest at the top of barh

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.barh(top_imp["feature"], top_imp["scaled"])
    ax.set_xlabel("Importance (scaled 0-100)")
    ax.set_title("Random Forest Feature Importance")
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


# -------------------------------------------------------------------
# 2. Descriptive figures
# -------------------------------------------------------------------

def plot_correlation(scaled, path, features=AUDIO_FEATURES):
    corr = correlation_matrix(scaled, features)

    fig, ax = plt.subplots(figsize=(8, 7))
    im = ax.imshow(corr.values, cmap=CORRELATION_CMAP, vmin=-1, vmax=1)
    ax.set_xticks(range(len(features)))
    ax.set_xticklabels(features, rotation=45, ha="right")
    ax.set_yticks(range(len(features)))
    ax.set_yticklabels(features)
    fig.colorbar(im, ax=ax, label="Correlation")
    ax.set_title("Correlation Between Spotify Audio Features", fontweight="bold")
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def plot_danceability_energy(scaled, path):
    fig, ax = plt.subplots(figsize=(7, 6))
    for label, color in ((NO_HIT, NO_HIT_COLOR), (HIT, HIT_COLOR)):
        subset = scaled[scaled[LABEL_COLUMN] == label]
        ax.scatter(subset["danceability"], subset["energy"],
                   color=color, alpha=0.65, s=20, label=label)
    ax.set_xlabel("Danceability (scaled)")
    ax.set_ylabel("Energy (scaled)")
    ax.set_title("Danceability vs Energy by Song Success")
    ax.grid(color="0.88", linestyle=":")
    ax.legend(loc="lower right", frameon=False)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def plot_yearly(table, column, path, ylabel, title, color, legend):
    """Yearly series with a LOWESS trend (skipped when there are too few years)."""
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(table["year"], table[column], "o-", color=color, lw=2, label=legend)

    if len(table) >= 3:
        trend = lowess(table[column], table["year"], frac=2 / 3, it=3)
        ax.plot(trend[:, 0], trend[:, 1], color=TREND_COLOR, lw=2, label="Smoothed trend")

    ax.set_xlabel("Year")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.grid(color="0.88", linestyle=":")
    ax.legend(loc="upper left", frameon=False)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


# -------------------------------------------------------------------
# 3. Write everything
# -------------------------------------------------------------------

def save_figures(result, out_dir):
    """
    @brief Write every figure for one pipeline run.

    @param result
        `PipelineResult` from `hit_song.analyze_records`.
    @param out_dir
        Output directory, created if needed.

    @return list of written `Path`s
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []

    path = out_dir / "roc_comparison.png"
    plot_roc(result.evaluations, path)
    written.append(path)

    if result.importance is not None:
        path = out_dir / "rf_importance.png"
        plot_importance(result.importance, path)
        written.append(path)

    path = out_dir / "feature_correlation.png"
    plot_correlation(result.scaled, path)
    written.append(path)

    path = out_dir / "danceability_vs_energy.png"
    plot_danceability_energy(result.scaled, path)
    written.append(path)

    path = out_dir / "hit_share_by_year.png"
    plot_yearly(
        hit_rate_by_year(result.songs), "hit_rate", path,
        ylabel="Proportion of Top-10 Hits",
        title="Proportion of Hit Songs Over Time",
        color=NO_HIT_COLOR,
        legend="Yearly proportion",
    )
    written.append(path)

    path = out_dir / "speechiness_by_year.png"
    plot_yearly(
        feature_by_year(result.songs, "speechiness"), "speechiness", path,
        ylabel="Average Speechiness",
        title="Average Speechiness of Songs Over Time",
        color=SPEECH_COLOR,
        legend="Yearly average",
    )
    written.append(path)

    for path in written:
        logger.info(f"Saved figure {path}")
    return written
