"""
Error classification system for upstream and data quality failures.

None of these reach the snapshot core: sources and parsers convert them into
absent values at their own boundary.
"""

from .data_quality import (
    DataQualityError,
    MalformedDataError,
)
from .upstream import (
    UpstreamError,
    UpstreamUnavailableError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MalformedDataError",
    # Upstream Failures
    "UpstreamError",
    "UpstreamUnavailableError",
]
