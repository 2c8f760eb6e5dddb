from .stats import (
    filter_courses,
    filter_rounds,
    map_markers,
    most_played_course,
    round_years,
    scoring_summary,
    stat_tiles,
)

__all__ = [
    "filter_courses",
    "filter_rounds",
    "map_markers",
    "most_played_course",
    "round_years",
    "scoring_summary",
    "stat_tiles",
]
