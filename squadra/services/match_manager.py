"""
Match manager for the Squadra team management application.

This module provides the single entry point through which a match is driven.
It owns the timer, ledger and statistics services for one :class:`Match` and
turns their state-guard rejections into a management error message instead
of letting them escape to the caller.
"""
import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..models import (
    Attribution, EventType, LineupEntry, Match, MatchEvent, Period, PeriodType, Player,
    Substitution,
)
from ..models.match_report import ActivityItem, MatchStatsSummary, PeriodSummary
from ..utils import RECENT_ACTIVITY_FULL
from .errors import MatchStateError
from .ledger_service import MatchLedgerService
from .statistics_service import MatchStatisticsService, PlayerDirectory
from .timer_service import MatchTimerService

logger = logging.getLogger(__name__)

Confirmer = Callable[[str], bool]

REMOVE_PERIOD_PROMPT = "Rimuovere l'ultimo periodo?"
FINISH_PROMPT = "Terminare la partita?"


def _always_confirm(prompt: str) -> bool:
    return True


class MatchManager:
    """
    Aggregate facade over one match.

    Mutating operations never raise on a rejected transition: they return a
    falsy value and leave the reason in :attr:`manage_error`. A successful
    operation clears it.
    """

    def __init__(
        self,
        match: Optional[Match] = None,
        players: Optional[PlayerDirectory] = None,
        confirmer: Optional[Confirmer] = None,
    ):
        """
        Initialize the manager.

        Args:
            match: Match to drive (a new scheduled match when omitted)
            players: Roster used for bench and name lookups
            confirmer: Callback asked before destructive operations
        """
        self.match = match or Match()
        self.players = players
        self.confirmer = confirmer or _always_confirm
        self.manage_error: Optional[str] = None

        self.timer = MatchTimerService(self.match)
        self.ledger = MatchLedgerService(self.match, self.timer, players)
        self.stats = MatchStatisticsService(self.match, players)

    # ------------------------------------------------------------------
    # Pre-match setup
    # ------------------------------------------------------------------
    def set_lineup(self, entries: Iterable[LineupEntry]) -> bool:
        return self._apply("Set lineup", self._set_lineup, list(entries))[0]

    def set_opponent_lineup(self, jersey_numbers: Iterable[int]) -> bool:
        return self._apply("Set opponent lineup", self._set_opponent_lineup, list(jersey_numbers))[0]

    def set_player_jersey_numbers(self, numbers: dict) -> bool:
        return self._apply("Set jersey numbers", self._set_player_jersey_numbers, dict(numbers))[0]

    # ------------------------------------------------------------------
    # Clock and periods
    # ------------------------------------------------------------------
    def start(self) -> bool:
        return self._apply("Start", self.timer.start)[0]

    def pause(self) -> bool:
        return self._apply("Pause", self.timer.pause)[0]

    def enter_interval(self) -> bool:
        return self._apply("Interval", self.timer.enter_interval)[0]

    def add_period(self, period_type: PeriodType) -> bool:
        return self._apply("Add period", self.timer.add_period, period_type)[0]

    def remove_last_period(self, skip_confirmation: bool = False) -> Optional[Period]:
        """Remove the last period after confirmation; None when rejected or declined."""
        if not self._confirmed(REMOVE_PERIOD_PROMPT, skip_confirmation):
            return None
        return self._apply("Remove last period", self.timer.remove_last_period)[1]

    def finish(self, skip_confirmation: bool = False) -> bool:
        if not self._confirmed(FINISH_PROMPT, skip_confirmation):
            return False
        return self._apply("Finish", self.timer.finish)[0]

    def tick(self) -> bool:
        return self.timer.tick()

    def catch_up(self, now: Optional[float] = None) -> int:
        return self.timer.catch_up(now)

    # ------------------------------------------------------------------
    # Ledgers
    # ------------------------------------------------------------------
    def record_goal(self, side: Attribution, scorer_ref: Any) -> Optional[MatchEvent]:
        return self._apply("Goal", self.ledger.record_goal, side, scorer_ref)[1]

    def remove_goal(self, side: Attribution) -> bool:
        return self._apply("Remove goal", self.ledger.remove_goal, side)[0]

    def record_card(
        self,
        kind: EventType,
        player_id: Optional[str] = None,
        opponent_jersey: Optional[int] = None,
    ) -> Optional[MatchEvent]:
        return self._apply("Card", self.ledger.record_card, kind, player_id, opponent_jersey)[1]

    def record_other_event(
        self,
        kind: EventType,
        description: str = "",
        attribution: Attribution = Attribution.OWN,
        player_ref: str = "",
    ) -> Optional[MatchEvent]:
        return self._apply(
            "Event", self.ledger.record_other_event, kind, description, attribution, player_ref
        )[1]

    def remove_event(self, event_id: str) -> bool:
        return self._apply("Remove event", self.ledger.remove_event, event_id)[0]

    def substitute(self, player_out: str, player_in: str) -> Optional[Substitution]:
        return self._apply("Substitution", self.ledger.substitute, player_out, player_in)[1]

    def remove_substitution(self, substitution_id: str) -> bool:
        return self._apply("Remove substitution", self.ledger.remove_substitution, substitution_id)[0]

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    def players_on_field(self) -> List[Player]:
        return self.stats.players_on_field()

    def players_on_bench(self) -> List[Player]:
        return self.stats.players_on_bench()

    def jersey_number_of(self, player_id: str) -> int:
        return self.stats.jersey_number_of(player_id)

    def summary(self) -> MatchStatsSummary:
        return self.stats.summary()

    def period_summaries(self) -> List[PeriodSummary]:
        return self.stats.period_summaries()

    def recent_activity(self, limit: int = RECENT_ACTIVITY_FULL) -> List[ActivityItem]:
        return self.stats.recent_activity(limit)

    def goal_timeline(self) -> List[MatchEvent]:
        return self.stats.goal_timeline()

    def card_timeline(self) -> List[MatchEvent]:
        return self.stats.card_timeline()

    def other_event_timeline(self) -> List[MatchEvent]:
        return self.stats.other_event_timeline()

    def substitution_timeline(self) -> List[Substitution]:
        return self.stats.substitution_timeline()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _apply(self, description: str, action: Callable, *args) -> Tuple[bool, Any]:
        try:
            result = action(*args)
        except MatchStateError as exc:
            self.manage_error = str(exc)
            logger.info("%s rejected for match %s: %s", description, self.match.id, exc)
            return False, None
        self.manage_error = None
        return True, result

    def _confirmed(self, prompt: str, skip_confirmation: bool) -> bool:
        if skip_confirmation or self.confirmer(prompt):
            return True
        logger.info("'%s' declined for match %s", prompt, self.match.id)
        return False

    def _ensure_pre_match(self) -> None:
        if self.match.has_started:
            raise MatchStateError("La formazione si può modificare solo prima dell'inizio")

    def _set_lineup(self, entries: List[LineupEntry]) -> None:
        self._ensure_pre_match()
        seen = set()
        for entry in entries:
            if entry.player_id in seen:
                raise MatchStateError("Un giocatore compare più volte in formazione")
            if entry.jersey_number <= 0:
                raise MatchStateError("Numero di maglia non valido")
            seen.add(entry.player_id)
        self.match.lineup = entries

    def _set_opponent_lineup(self, jersey_numbers: List[int]) -> None:
        self._ensure_pre_match()
        if any(n <= 0 for n in jersey_numbers):
            raise MatchStateError("Numero di maglia avversaria non valido")
        self.match.opponent_lineup = sorted(set(jersey_numbers))

    def _set_player_jersey_numbers(self, numbers: dict) -> None:
        self._ensure_pre_match()
        if any(int(n) <= 0 for n in numbers.values()):
            raise MatchStateError("Numero di maglia non valido")
        self.match.player_jersey_numbers = {str(k): int(v) for k, v in numbers.items()}
