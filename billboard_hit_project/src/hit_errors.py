"""
@file hit_errors.py
@brief Exceptions raised by the Billboard hit analysis.
"""


class HitAnalysisError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class DatasetFormatError(HitAnalysisError):
    """The raw file is missing required columns or holds unparseable values."""


class UndefinedMetricError(HitAnalysisError):
    """ROC/AUC asked for on labels that contain a single class."""


class PipelineError(HitAnalysisError):
    """The run cannot produce any usable result (empty data, every model failed)."""
