"""Dataclasses representing derived match views for the Squadra app."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class MatchStatsSummary:
    """Aggregate counts for a match, split by attribution."""

    own_goals: int
    opponent_goals: int
    own_cards: int
    opponent_cards: int
    substitutions: int

    @property
    def total_cards(self) -> int:
        return self.own_cards + self.opponent_cards


@dataclass
class PeriodSummary:
    """Elapsed time of a single period."""

    index: int
    type: str
    label: str
    duration: int
    formatted: str
    is_current: bool


@dataclass
class ActivityItem:
    """One row of the merged events/substitutions feed."""

    id: str
    type: str
    minute: int
    second: int
    description: str
    attribution: Optional[str] = None

    @property
    def stamp(self) -> str:
        return f"{self.minute}:{self.second:02d}"


@dataclass
class PlayerSeasonStats:
    """Per-player totals over finished matches."""

    player_id: str
    matches_played: int = 0
    goals: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
