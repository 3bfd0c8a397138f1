"""
Utilities package for the Squadra team management application.

This package contains utility functions and constants used throughout the application.
"""
from .time_utils import fmt_mmss, now_ts, split_elapsed
from .constants import (
    APP_TITLE, INTERVAL_LABEL, RECENT_ACTIVITY_COMPACT, RECENT_ACTIVITY_FULL,
    UNKNOWN_JERSEY, UNKNOWN_JERSEY_TEXT, UNKNOWN_PLAYER_TEXT
)

__all__ = [
    "fmt_mmss", "now_ts", "split_elapsed", "APP_TITLE", "INTERVAL_LABEL",
    "RECENT_ACTIVITY_COMPACT", "RECENT_ACTIVITY_FULL",
    "UNKNOWN_JERSEY", "UNKNOWN_JERSEY_TEXT", "UNKNOWN_PLAYER_TEXT"
]
