"""Reporting package: filtering, aggregation and the report views."""

from bookkeeper.calculator import calculate_total
from bookkeeper.reports.aggregator import aggregate, rank_top
from bookkeeper.reports.filters import (
    FilterCriteria,
    filter_transactions,
    local_date,
    parse_date_bound,
)
from bookkeeper.reports.views import (
    ReportService,
    category_breakdown,
    daily_series,
    funds_flow,
    summary_stats,
    top_items,
)

__all__ = [
    "FilterCriteria",
    "ReportService",
    "aggregate",
    "calculate_total",
    "category_breakdown",
    "daily_series",
    "filter_transactions",
    "funds_flow",
    "local_date",
    "parse_date_bound",
    "rank_top",
    "summary_stats",
    "top_items",
]
