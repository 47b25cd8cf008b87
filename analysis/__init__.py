"""Cost-analysis engine shared by the cost-oriented tools.

Pipeline: records -> aggregate -> significance cutoff -> summary text / chart spec.
"""

from analysis.aggregation import aggregate, group_by_parent, parse_cost, roll_up_parents
from analysis.chart import build_cost_chart, build_metric_chart, chart_rows
from analysis.date_range import calculate_date_range, default_look_back
from analysis.significance import select_significant, split_significant
from analysis.summary import render_summary, summarize_cost_records
from analysis.trend import estimate_trend, min_max, standard_deviation

__all__ = [
    "aggregate",
    "build_cost_chart",
    "build_metric_chart",
    "calculate_date_range",
    "chart_rows",
    "default_look_back",
    "estimate_trend",
    "group_by_parent",
    "min_max",
    "parse_cost",
    "render_summary",
    "roll_up_parents",
    "select_significant",
    "split_significant",
    "standard_deviation",
    "summarize_cost_records",
]
