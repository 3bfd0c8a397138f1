"""Derived match views for the Squadra team management application.

Everything here is computed from the :class:`Match` on demand and never
stored back on it.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from ..models import (
    ActivityItem, Attribution, EventType, Match, MatchEvent, MatchStatsSummary,
    Player, PlayerSeasonStats, Substitution,
)
from ..models.match_report import PeriodSummary
from ..utils import (
    RECENT_ACTIVITY_FULL, UNKNOWN_JERSEY, UNKNOWN_JERSEY_TEXT, UNKNOWN_PLAYER_TEXT,
    fmt_mmss,
)
from ..utils.constants import CARD_EVENT_TYPES, DISCIPLINARY_EVENT_TYPES, OTHER_EVENT_TYPES
from .errors import MatchStateError


class PlayerDirectory(Protocol):
    """Roster lookup the match core depends on - supports DIP."""

    def get_player(self, player_id: str) -> Optional[Player]:
        ...

    def list_players(self) -> List[Player]:
        ...


def resolve_jersey_number(match: Match, player_id: str, snapshot: Optional[int] = None) -> int:
    """Resolve the jersey number snapshotted on a substitution.

    Fallback order: the record's own ``snapshot``, the match-wide jersey map,
    the lineup, the most recent substitution snapshot for that player, and
    finally :data:`UNKNOWN_JERSEY`.
    """
    if snapshot:
        return snapshot
    mapped = match.player_jersey_numbers.get(player_id)
    if mapped:
        return mapped
    entry = match.lineup_entry(player_id)
    if entry is not None and entry.jersey_number:
        return entry.jersey_number
    return _substitution_snapshot(match, player_id)


def displayed_jersey_number(match: Match, player_id: str) -> int:
    """Jersey number shown for a player during the match.

    The lineup number wins, then the latest substitution snapshot, then the
    match-wide jersey map.
    """
    entry = match.lineup_entry(player_id)
    if entry is not None and entry.jersey_number:
        return entry.jersey_number
    number = _substitution_snapshot(match, player_id)
    if number != UNKNOWN_JERSEY:
        return number
    return match.player_jersey_numbers.get(player_id) or UNKNOWN_JERSEY


def _substitution_snapshot(match: Match, player_id: str) -> int:
    for sub in reversed(match.substitutions):
        if sub.player_in == player_id and sub.player_in_jersey_number:
            return sub.player_in_jersey_number
        if sub.player_out == player_id and sub.player_out_jersey_number:
            return sub.player_out_jersey_number
    return UNKNOWN_JERSEY


def format_jersey(number: int) -> str:
    return str(number) if number != UNKNOWN_JERSEY else UNKNOWN_JERSEY_TEXT


def replay_field(lineup_ids: Sequence[str], substitutions: Iterable[Substitution]) -> List[str]:
    """Apply substitutions in ledger order to the starting slots.

    Ledger order is used rather than (minute, second) because stamps restart
    with every period.

    Raises:
        MatchStateError: If a substitution no longer fits the field it is applied to
    """
    field_ids = list(lineup_ids)
    for sub in substitutions:
        if sub.player_out not in field_ids:
            raise MatchStateError(
                f"Impossibile applicare la sostituzione: il giocatore che esce "
                f"(#{format_jersey(sub.player_out_jersey_number)}) non è in campo."
            )
        if sub.player_in in field_ids:
            raise MatchStateError(
                f"Impossibile applicare la sostituzione: il giocatore che entra "
                f"(#{format_jersey(sub.player_in_jersey_number)}) è già in campo."
            )
        field_ids[field_ids.index(sub.player_out)] = sub.player_in
    return field_ids


def on_field_ids(match: Match) -> List[str]:
    return replay_field([e.player_id for e in match.lineup], match.substitutions)


def bench_ids(match: Match, players: Optional[PlayerDirectory] = None) -> List[str]:
    """Players available to come on: active roster players not on the field.

    Without a roster, every player the match knows about is considered.
    """
    field_set = set(on_field_ids(match))
    if players is not None:
        candidates = [p.id for p in players.list_players() if p.is_active]
    else:
        candidates = [e.player_id for e in match.lineup]
        candidates += list(match.player_jersey_numbers)
        candidates += [s.player_in for s in match.substitutions]
        candidates += [s.player_out for s in match.substitutions]
    seen = set()
    bench = []
    for player_id in candidates:
        if player_id in field_set or player_id in seen:
            continue
        seen.add(player_id)
        bench.append(player_id)
    return bench


def sort_most_recent_first(items: list) -> list:
    """Sort by (minute desc, second desc); equal stamps keep their order."""
    return sorted(items, key=lambda item: (-item.minute, -item.second))


class MatchStatisticsService:
    """Compute on-field rosters, counts and feeds for one match."""

    def __init__(self, match: Match, players: Optional[PlayerDirectory] = None) -> None:
        self.match = match
        self.players = players

    # ------------------------------------------------------------------
    # Rosters
    # ------------------------------------------------------------------
    def players_on_field(self) -> List[Player]:
        return self._resolve_players(on_field_ids(self.match))

    def players_on_bench(self) -> List[Player]:
        return self._resolve_players(bench_ids(self.match, self.players))

    def jersey_number_of(self, player_id: str) -> int:
        return displayed_jersey_number(self.match, player_id)

    def player_label(self, player_id: str) -> str:
        """Surname used in descriptions, or a placeholder for unknown ids."""
        player = self.players.get_player(player_id) if self.players is not None else None
        return player.last_name if player is not None else UNKNOWN_PLAYER_TEXT

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    def summary(self) -> MatchStatsSummary:
        goals = Counter(
            e.attribution for e in self.match.events if e.type is EventType.GOAL
        )
        cards = Counter(
            e.attribution for e in self.match.events if e.type.value in CARD_EVENT_TYPES
        )
        return MatchStatsSummary(
            own_goals=goals.get(Attribution.OWN, 0),
            opponent_goals=goals.get(Attribution.OPPONENT, 0),
            own_cards=cards.get(Attribution.OWN, 0),
            opponent_cards=cards.get(Attribution.OPPONENT, 0),
            substitutions=len(self.match.substitutions),
        )

    def period_summaries(self) -> List[PeriodSummary]:
        current = self.match.current_period_index
        return [
            PeriodSummary(
                index=idx,
                type=period.type.value,
                label=period.label,
                duration=period.duration,
                formatted=fmt_mmss(period.duration),
                is_current=idx == current,
            )
            for idx, period in enumerate(self.match.periods)
        ]

    # ------------------------------------------------------------------
    # Timelines
    # ------------------------------------------------------------------
    def goal_timeline(self) -> List[MatchEvent]:
        return sort_most_recent_first([e for e in self.match.events if e.type is EventType.GOAL])

    def card_timeline(self) -> List[MatchEvent]:
        return sort_most_recent_first(
            [e for e in self.match.events if e.type.value in DISCIPLINARY_EVENT_TYPES]
        )

    def other_event_timeline(self) -> List[MatchEvent]:
        return sort_most_recent_first(
            [e for e in self.match.events if e.type.value in OTHER_EVENT_TYPES]
        )

    def substitution_timeline(self) -> List[Substitution]:
        return sort_most_recent_first(list(self.match.substitutions))

    def recent_activity(self, limit: int = RECENT_ACTIVITY_FULL) -> List[ActivityItem]:
        """Merge events and substitutions, most recent first, truncated to ``limit``."""
        items = [
            ActivityItem(
                id=e.id,
                type=e.type.value,
                minute=e.minute,
                second=e.second,
                description=e.description,
                attribution=e.attribution.value,
            )
            for e in self.match.events
        ]
        items += [
            ActivityItem(
                id=s.id,
                type="substitution",
                minute=s.minute,
                second=s.second,
                description=self.describe_substitution(s),
            )
            for s in self.match.substitutions
        ]
        return sort_most_recent_first(items)[: max(0, limit)]

    def describe_substitution(self, sub: Substitution) -> str:
        out_number = format_jersey(resolve_jersey_number(self.match, sub.player_out, sub.player_out_jersey_number))
        in_number = format_jersey(resolve_jersey_number(self.match, sub.player_in, sub.player_in_jersey_number))
        return (
            f"#{out_number} {self.player_label(sub.player_out)} ↔ "
            f"#{in_number} {self.player_label(sub.player_in)}"
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _resolve_players(self, ids: Iterable[str]) -> List[Player]:
        if self.players is None:
            return []
        resolved = []
        for player_id in ids:
            player = self.players.get_player(player_id)
            if player is not None:
                resolved.append(player)
        return resolved


def season_player_stats(players: Iterable[Player], matches: Iterable[Match]) -> Dict[str, PlayerSeasonStats]:
    """Goals, cards and appearances per player over finished matches."""
    stats = {p.id: PlayerSeasonStats(player_id=p.id) for p in players}

    for match in matches:
        if not match.is_finished:
            continue
        for event in match.events:
            entry = stats.get(event.player_ref)
            if entry is None or event.attribution is not Attribution.OWN:
                continue
            if event.type is EventType.GOAL:
                entry.goals += 1
            elif event.type in (EventType.YELLOW_CARD, EventType.SECOND_YELLOW_CARD):
                entry.yellow_cards += 1
            elif event.type in (EventType.RED_CARD, EventType.EXPULSION):
                entry.red_cards += 1

        appeared = [e.player_id for e in match.lineup] + [s.player_in for s in match.substitutions]
        for player_id in dict.fromkeys(appeared):
            if player_id in stats:
                stats[player_id].matches_played += 1

    return stats
