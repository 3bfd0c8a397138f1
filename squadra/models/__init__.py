"""
Models package for the Squadra team management application.

This package contains the core data models used throughout the application.
"""
from .match import (
    Match, MatchClockState, ClockPhase, MatchStatus, HomeAway, Period, PeriodType,
    MatchEvent, EventType, Attribution, Substitution, LineupEntry, generate_id
)
from .roster import Player, Group, Permissions, User, UserStatus, Training
from .match_report import MatchStatsSummary, PeriodSummary, ActivityItem, PlayerSeasonStats

__all__ = [
    "Match", "MatchClockState", "ClockPhase", "MatchStatus", "HomeAway", "Period",
    "PeriodType", "MatchEvent", "EventType", "Attribution", "Substitution",
    "LineupEntry", "generate_id",
    "Player", "Group", "Permissions", "User", "UserStatus", "Training",
    "MatchStatsSummary", "PeriodSummary", "ActivityItem", "PlayerSeasonStats"
]
