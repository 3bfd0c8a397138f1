"""
Event and substitution ledgers for the Squadra team management application.

This module records and removes goals, cards, other timeline events and
substitutions on a :class:`Match`. Each operation validates everything it
needs before touching the match, so a rejected call changes nothing.
"""
import logging
from typing import Optional, Union

from ..models import (
    Attribution, EventType, HomeAway, Match, MatchEvent, Substitution, generate_id,
)
from ..utils.constants import (
    CARD_DESCRIPTIONS_OPPONENT, CARD_DESCRIPTIONS_OWN, DISCIPLINARY_EVENT_TYPES,
    OPPONENT_GOAL_DESCRIPTION, OTHER_EVENT_TYPES, OWN_GOAL_DESCRIPTION,
    OWN_TEAM_ONLY_EVENT_TYPES, REASON_REQUIRED_EVENT_TYPES,
)
from .errors import MatchStateError
from .statistics_service import (
    MatchStatisticsService, PlayerDirectory, bench_ids, on_field_ids, replay_field,
    resolve_jersey_number,
)
from .timer_service import MatchTimerService

logger = logging.getLogger(__name__)


class MatchLedgerService:
    """
    Service for the event and substitution ledgers of one match.

    Records are stamped with the elapsed time of the current period as
    reported by the timer service.
    """

    def __init__(
        self,
        match: Match,
        timer_service: Optional[MatchTimerService] = None,
        players: Optional[PlayerDirectory] = None,
    ):
        self.match = match
        self.timer_service = timer_service or MatchTimerService(match)
        self.players = players
        self._stats = MatchStatisticsService(match, players)

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------
    def record_goal(self, side: Attribution, scorer_ref: Union[str, int, None]) -> MatchEvent:
        """
        Record a goal for one side and bump the matching score.

        Args:
            side: Whether our team or the opponent scored
            scorer_ref: Player id for our goals, opponent jersey number otherwise

        Returns:
            The ledger entry that was appended

        Raises:
            MatchStateError: If no scorer is given or the match does not accept events
        """
        self._ensure_can_record()
        if scorer_ref is None or str(scorer_ref).strip() == "":
            raise MatchStateError("Seleziona il marcatore")

        if side is Attribution.OWN:
            player_id = str(scorer_ref)
            if not self._is_on_match_sheet(player_id):
                raise MatchStateError("Il marcatore non è nella distinta della partita")
            description = OWN_GOAL_DESCRIPTION.format(name=self._stats.player_label(player_id))
            player_ref = player_id
        else:
            jersey = self._opponent_jersey(scorer_ref)
            description = OPPONENT_GOAL_DESCRIPTION.format(jersey=jersey)
            player_ref = str(jersey)

        event = self._new_event(EventType.GOAL, side, description, player_ref)
        self._adjust_score(side, +1)
        self.match.events.append(event)
        logger.info(
            "Goal (%s) at %d:%02d in match %s, score %d-%d",
            side.value, event.minute, event.second, self.match.id,
            self.match.home_score, self.match.away_score,
        )
        return event

    def remove_goal(self, side: Attribution) -> int:
        """
        Take one goal off a side's score without touching the ledger.

        Returns:
            The new score of that side

        Raises:
            MatchStateError: If the score is already zero or removals are blocked
        """
        self._ensure_can_remove()
        if self._score_of(side) <= 0:
            raise MatchStateError("Il punteggio è già a zero")
        self._adjust_score(side, -1)
        return self._score_of(side)

    # ------------------------------------------------------------------
    # Cards and other events
    # ------------------------------------------------------------------
    def record_card(
        self,
        kind: EventType,
        player_id: Optional[str] = None,
        opponent_jersey: Optional[int] = None,
    ) -> MatchEvent:
        """Record a disciplinary event for one of our players or an opponent jersey."""
        self._ensure_can_record()
        if kind.value not in DISCIPLINARY_EVENT_TYPES:
            raise MatchStateError(f"Tipo di ammonizione non valido: {kind.value}")
        if (player_id is None) == (opponent_jersey is None):
            raise MatchStateError("Indica un giocatore oppure una maglia avversaria")

        if player_id is not None:
            if not self._is_on_match_sheet(player_id):
                raise MatchStateError("Il giocatore non è nella distinta della partita")
            description = CARD_DESCRIPTIONS_OWN[kind.value].format(name=self._stats.player_label(player_id))
            event = self._new_event(kind, Attribution.OWN, description, player_id)
        else:
            jersey = self._opponent_jersey(opponent_jersey)
            description = CARD_DESCRIPTIONS_OPPONENT[kind.value].format(jersey=jersey)
            event = self._new_event(kind, Attribution.OPPONENT, description, str(jersey))

        self.match.events.append(event)
        logger.info("%s recorded at %d:%02d in match %s", kind.value, event.minute, event.second, self.match.id)
        return event

    def record_other_event(
        self,
        kind: EventType,
        description: str = "",
        attribution: Attribution = Attribution.OWN,
        player_ref: str = "",
    ) -> MatchEvent:
        """Record a foul, corner, offside, free kick, penalty, throw-in or injury."""
        self._ensure_can_record()
        if kind.value not in OTHER_EVENT_TYPES:
            raise MatchStateError(f"Tipo di evento non valido: {kind.value}")
        description = (description or "").strip()
        if kind.value in REASON_REQUIRED_EVENT_TYPES and not description:
            raise MatchStateError("Per questo evento è necessario indicare il motivo")
        if kind.value in OWN_TEAM_ONLY_EVENT_TYPES and attribution is not Attribution.OWN:
            raise MatchStateError("Questo evento è registrabile solo per la propria squadra")

        event = self._new_event(kind, attribution, description, str(player_ref or ""))
        self.match.events.append(event)
        logger.info("%s recorded at %d:%02d in match %s", kind.value, event.minute, event.second, self.match.id)
        return event

    def remove_event(self, event_id: str) -> Optional[MatchEvent]:
        """
        Remove exactly one ledger entry by id.

        Scores are not adjusted; pair goal removals with :meth:`remove_goal`.

        Returns:
            The removed entry, or None when no entry has that id
        """
        self._ensure_can_remove()
        for idx, event in enumerate(self.match.events):
            if event.id == event_id:
                del self.match.events[idx]
                logger.info("Removed %s %s from match %s", event.type.value, event_id, self.match.id)
                return event
        return None

    # ------------------------------------------------------------------
    # Substitutions
    # ------------------------------------------------------------------
    def substitute(self, player_out: str, player_in: str) -> Substitution:
        """
        Swap a player on the field for one on the bench.

        Raises:
            MatchStateError: If the pair is invalid or the match does not accept changes
        """
        self._ensure_can_record()
        if not player_out or not player_in:
            raise MatchStateError("Seleziona il giocatore che esce e quello che entra")
        if player_out == player_in:
            raise MatchStateError("Il giocatore che esce e quello che entra devono essere diversi")
        if player_out not in on_field_ids(self.match):
            raise MatchStateError("Il giocatore che esce non è in campo")
        if player_in not in bench_ids(self.match, self.players):
            raise MatchStateError("Il giocatore che entra non è in panchina")

        minute, second = self.timer_service.current_stamp()
        substitution = Substitution(
            id=generate_id(),
            player_out=player_out,
            player_in=player_in,
            player_out_jersey_number=resolve_jersey_number(self.match, player_out),
            player_in_jersey_number=resolve_jersey_number(self.match, player_in),
            minute=minute,
            second=second,
        )
        self.match.substitutions.append(substitution)
        logger.info(
            "Substitution %s -> %s at %d:%02d in match %s",
            player_out, player_in, minute, second, self.match.id,
        )
        return substitution

    def remove_substitution(self, substitution_id: str) -> Optional[Substitution]:
        """
        Remove a substitution and re-derive the field from the remaining ones.

        Raises:
            MatchStateError: If a later substitution depends on this one
        """
        self._ensure_can_remove()
        index = next(
            (i for i, s in enumerate(self.match.substitutions) if s.id == substitution_id), None
        )
        if index is None:
            return None

        remaining = self.match.substitutions[:index] + self.match.substitutions[index + 1:]
        replay_field([e.player_id for e in self.match.lineup], remaining)

        removed = self.match.substitutions[index]
        self.match.substitutions = remaining
        logger.info("Removed substitution %s from match %s", substitution_id, self.match.id)
        return removed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _new_event(self, kind: EventType, side: Attribution, description: str, player_ref: str) -> MatchEvent:
        minute, second = self.timer_service.current_stamp()
        return MatchEvent(
            id=generate_id(),
            type=kind,
            minute=minute,
            second=second,
            attribution=side,
            description=description,
            player_ref=player_ref,
        )

    def _score_field(self, side: Attribution) -> str:
        ours_at_home = self.match.home_away is HomeAway.HOME
        if (side is Attribution.OWN) == ours_at_home:
            return "home_score"
        return "away_score"

    def _score_of(self, side: Attribution) -> int:
        return getattr(self.match, self._score_field(side))

    def _adjust_score(self, side: Attribution, delta: int) -> None:
        name = self._score_field(side)
        setattr(self.match, name, max(0, getattr(self.match, name) + delta))

    def _is_on_match_sheet(self, player_id: str) -> bool:
        if self.match.lineup_entry(player_id) is not None:
            return True
        return any(s.player_in == player_id for s in self.match.substitutions)

    def _opponent_jersey(self, value: Union[str, int, None]) -> int:
        try:
            jersey = int(value)
        except (TypeError, ValueError):
            raise MatchStateError("Numero di maglia avversaria non valido")
        if jersey <= 0:
            raise MatchStateError("Numero di maglia avversaria non valido")
        if self.match.opponent_lineup and jersey not in self.match.opponent_lineup:
            raise MatchStateError(f"La maglia avversaria #{jersey} non è in distinta")
        return jersey

    def _ensure_can_record(self) -> None:
        if not self.match.has_started:
            raise MatchStateError("La partita non è ancora iniziata")
        self._ensure_can_remove()

    def _ensure_can_remove(self) -> None:
        if self.match.is_finished:
            raise MatchStateError("La partita è terminata")
        if self.match.in_interval:
            raise MatchStateError("Operazione non consentita durante l'intervallo")
