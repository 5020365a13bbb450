"""Marine Report - aggregated marine conditions for a coastal dashboard.

The marine_report package collects buoy observations, tide predictions,
wave forecasts and sun times concurrently and merges them into one report
that is always produced, even when some sources fail.
"""

__version__ = "1.0.0"
__license__ = "MIT"
__description__ = "Fault-tolerant marine conditions aggregator"

from .collector import ReportCollector, collect_report
from .models.report import AggregatedReport

__all__ = ["AggregatedReport", "ReportCollector", "collect_report"]
