"""Time series alignment of spot and prediction prices"""

from .aligner import SeriesAligner, align

__all__ = ["SeriesAligner", "align"]
