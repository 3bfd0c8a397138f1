"""
Match model for the Squadra team management application.

This module contains the Match aggregate and the records it owns: periods,
timeline events, substitutions and lineup entries. The match clock is kept as
an explicit tagged state so that a period index can never exist before the
match has started.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class HomeAway(Enum):
    """Whether the managed team plays at home or away."""
    HOME = "home"
    AWAY = "away"


class MatchStatus(Enum):
    """Coarse match status derived from the clock phase."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    FINISHED = "finished"


class ClockPhase(Enum):
    """Phases of the period/timer state machine."""
    PRE_MATCH = "pre-match"
    RUNNING = "running"
    PAUSED = "paused"
    INTERVAL = "interval"
    FINISHED = "finished"


class PeriodType(Enum):
    """Kinds of match period."""
    REGULAR = "regular"
    EXTRA = "extra"
    INTERVAL = "interval"


class EventType(Enum):
    """Timeline event kinds."""
    GOAL = "goal"
    YELLOW_CARD = "yellow-card"
    RED_CARD = "red-card"
    SECOND_YELLOW_CARD = "second-yellow-card"
    BLUE_CARD = "blue-card"
    EXPULSION = "expulsion"
    WARNING = "warning"
    FOUL = "foul"
    CORNER = "corner"
    OFFSIDE = "offside"
    FREE_KICK = "free-kick"
    PENALTY = "penalty"
    THROW_IN = "throw-in"
    INJURY = "injury"


class Attribution(Enum):
    """Which team an event belongs to."""
    OWN = "own"
    OPPONENT = "opponent"


def generate_id() -> str:
    """Return a new opaque record identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class MatchClockState:
    """
    Tagged clock state.

    ``PRE_MATCH`` carries no period index; every other phase points at the
    current period.
    """
    phase: ClockPhase = ClockPhase.PRE_MATCH
    period_index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.phase is ClockPhase.PRE_MATCH:
            if self.period_index is not None:
                raise ValueError("Pre-match clock cannot point at a period")
        elif self.period_index is None or self.period_index < 0:
            raise ValueError(f"Clock phase {self.phase.value} requires a period index")

    @classmethod
    def pre_match(cls) -> "MatchClockState":
        return cls()

    @classmethod
    def running(cls, period_index: int) -> "MatchClockState":
        return cls(ClockPhase.RUNNING, period_index)

    @classmethod
    def paused(cls, period_index: int) -> "MatchClockState":
        return cls(ClockPhase.PAUSED, period_index)

    @classmethod
    def interval(cls, period_index: int) -> "MatchClockState":
        return cls(ClockPhase.INTERVAL, period_index)

    @classmethod
    def finished(cls, period_index: int) -> "MatchClockState":
        return cls(ClockPhase.FINISHED, period_index)


@dataclass
class Period:
    """One timed segment of a match."""
    type: PeriodType
    label: str
    duration: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "label": self.label, "duration": self.duration}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Period":
        return cls(
            type=PeriodType(data["type"]),
            label=data.get("label", ""),
            duration=int(data.get("duration", 0)),
        )


@dataclass(frozen=True)
class MatchEvent:
    """Immutable timeline entry (goal, card or other event)."""
    id: str
    type: EventType
    minute: int
    second: int
    attribution: Attribution
    description: str = ""
    player_ref: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "minute": self.minute,
            "second": self.second,
            "attribution": self.attribution.value,
            "description": self.description,
            "player_ref": self.player_ref,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchEvent":
        return cls(
            id=data["id"],
            type=EventType(data["type"]),
            minute=int(data.get("minute", 0)),
            second=int(data.get("second") or 0),
            attribution=Attribution(data.get("attribution", Attribution.OWN.value)),
            description=data.get("description") or "",
            player_ref=str(data.get("player_ref") or ""),
        )


@dataclass(frozen=True)
class Substitution:
    """Immutable substitution record with jersey numbers captured at the time."""
    id: str
    player_out: str
    player_in: str
    player_out_jersey_number: int
    player_in_jersey_number: int
    minute: int
    second: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_out": self.player_out,
            "player_in": self.player_in,
            "player_out_jersey_number": self.player_out_jersey_number,
            "player_in_jersey_number": self.player_in_jersey_number,
            "minute": self.minute,
            "second": self.second,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Substitution":
        return cls(
            id=data["id"],
            player_out=data["player_out"],
            player_in=data["player_in"],
            player_out_jersey_number=int(data.get("player_out_jersey_number") or 0),
            player_in_jersey_number=int(data.get("player_in_jersey_number") or 0),
            minute=int(data.get("minute", 0)),
            second=int(data.get("second") or 0),
        )


@dataclass(frozen=True)
class LineupEntry:
    """A starting player with the jersey number and position for this match."""
    player_id: str
    jersey_number: int
    position: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "jersey_number": self.jersey_number,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineupEntry":
        return cls(
            player_id=data["player_id"],
            jersey_number=int(data.get("jersey_number") or 0),
            position=data.get("position") or "",
        )


@dataclass
class Match:
    """
    Represents the complete state of a single match.

    Attributes:
        opponent: Opponent team name
        date: Match date (YYYY-MM-DD)
        time: Kick-off time (HH:MM)
        location: Venue
        pitch: Pitch name within the venue (serialized as "field")
        home_away: Whether the managed team plays at home
        home_score: Goals of the home side
        away_score: Goals of the away side
        periods: Ordered periods played so far
        clock: Tagged clock state (phase and current period)
        lineup: Starting players, unique by player id
        opponent_lineup: Opponent jersey numbers, used for goal attribution
        events: Timeline ledger
        substitutions: Substitution ledger
        player_jersey_numbers: Match-wide jersey snapshot (player id -> number)
        last_tick_ts: Epoch seconds of the last clock catch-up while running
    """
    opponent: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    pitch: str = ""
    home_away: HomeAway = HomeAway.HOME
    id: str = field(default_factory=generate_id)
    home_score: int = 0
    away_score: int = 0
    periods: List[Period] = field(default_factory=list)
    clock: MatchClockState = field(default_factory=MatchClockState.pre_match)
    lineup: List[LineupEntry] = field(default_factory=list)
    opponent_lineup: List[int] = field(default_factory=list)
    events: List[MatchEvent] = field(default_factory=list)
    substitutions: List[Substitution] = field(default_factory=list)
    player_jersey_numbers: Dict[str, int] = field(default_factory=dict)
    last_tick_ts: Optional[float] = None

    @property
    def status(self) -> MatchStatus:
        if self.clock.phase is ClockPhase.PRE_MATCH:
            return MatchStatus.SCHEDULED
        if self.clock.phase is ClockPhase.FINISHED:
            return MatchStatus.FINISHED
        return MatchStatus.IN_PROGRESS

    @property
    def has_started(self) -> bool:
        return self.clock.phase is not ClockPhase.PRE_MATCH

    @property
    def is_finished(self) -> bool:
        return self.clock.phase is ClockPhase.FINISHED

    @property
    def current_period_index(self) -> Optional[int]:
        return self.clock.period_index

    @property
    def current_period(self) -> Optional[Period]:
        idx = self.clock.period_index
        if idx is None or idx >= len(self.periods):
            return None
        return self.periods[idx]

    @property
    def in_interval(self) -> bool:
        period = self.current_period
        return period is not None and period.type is PeriodType.INTERVAL

    def lineup_entry(self, player_id: str) -> Optional[LineupEntry]:
        return next((e for e in self.lineup if e.player_id == player_id), None)

    def own_score(self) -> int:
        return self.home_score if self.home_away is HomeAway.HOME else self.away_score

    def opponent_score(self) -> int:
        return self.away_score if self.home_away is HomeAway.HOME else self.home_score

    def to_json(self) -> dict:
        """
        Convert Match to JSON-serializable dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        return {
            "id": self.id,
            "opponent": self.opponent,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "field": self.pitch,
            "home_away": self.home_away.value,
            "status": self.status.value,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "periods": [p.to_dict() for p in self.periods],
            "clock": {
                "phase": self.clock.phase.value,
                "period_index": self.clock.period_index,
            },
            "lineup": [e.to_dict() for e in self.lineup],
            "opponent_lineup": list(self.opponent_lineup),
            "events": [e.to_dict() for e in self.events],
            "substitutions": [s.to_dict() for s in self.substitutions],
            "player_jersey_numbers": dict(self.player_jersey_numbers),
            "last_tick_ts": self.last_tick_ts,
        }

    @staticmethod
    def from_json(data: dict) -> "Match":
        """
        Create Match from JSON dictionary.

        Args:
            data: Dictionary with match data

        Returns:
            New Match instance

        Raises:
            ValueError: If the clock state does not fit the stored periods
        """
        match = Match(
            opponent=data.get("opponent", ""),
            date=data.get("date", ""),
            time=data.get("time") or "",
            location=data.get("location") or "",
            pitch=data.get("field") or "",
            home_away=HomeAway(data.get("home_away", HomeAway.HOME.value)),
        )
        if data.get("id"):
            match.id = data["id"]
        match.home_score = max(0, int(data.get("home_score", 0)))
        match.away_score = max(0, int(data.get("away_score", 0)))
        match.periods = [Period.from_dict(p) for p in data.get("periods", []) or []]

        clock = data.get("clock") or {}
        phase = ClockPhase(clock.get("phase", ClockPhase.PRE_MATCH.value))
        index = clock.get("period_index")
        match.clock = MatchClockState(phase, None if index is None else int(index))
        if match.clock.period_index is not None and match.clock.period_index >= len(match.periods):
            raise ValueError("Clock points past the last stored period")
        if phase is not ClockPhase.PRE_MATCH and not match.periods:
            raise ValueError("A started match must have at least one period")

        match.lineup = [LineupEntry.from_dict(e) for e in data.get("lineup", []) or []]
        match.opponent_lineup = [int(n) for n in data.get("opponent_lineup", []) or []]
        match.events = [MatchEvent.from_dict(e) for e in data.get("events", []) or []]
        match.substitutions = [Substitution.from_dict(s) for s in data.get("substitutions", []) or []]
        match.player_jersey_numbers = {
            str(k): int(v) for k, v in (data.get("player_jersey_numbers") or {}).items()
        }
        match.last_tick_ts = data.get("last_tick_ts")
        return match
