import unittest

from squadra.models import (
    Attribution, ClockPhase, EventType, LineupEntry, Match, MatchClockState, MatchEvent, Period,
    PeriodType, Player, Substitution,
)
from squadra.services import MatchStatisticsService, RosterService, resolve_jersey_number
from squadra.services.errors import MatchStateError
from squadra.services.statistics_service import (
    bench_ids, format_jersey, replay_field, season_player_stats,
)


def event(event_id, kind, minute, second, attribution=Attribution.OWN, player_ref="", description=""):
    return MatchEvent(event_id, kind, minute, second, attribution, description, player_ref)


def substitution(sub_id, out_id, in_id, minute, second, out_number=0, in_number=0):
    return Substitution(sub_id, out_id, in_id, out_number, in_number, minute, second)


class MatchStatisticsServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.roster = RosterService()
        self.rossi = self.roster.add_player(Player("Marco", "Rossi", "2010-05-15", "TES001", id="p1"))
        self.bianchi = self.roster.add_player(Player("Luca", "Bianchi", "2010-03-02", "TES002", id="p2"))
        self.verdi = self.roster.add_player(Player("Paolo", "Verdi", "2011-01-20", "TES003", id="p3"))
        self.neri = self.roster.add_player(Player("Gino", "Neri", "2010-09-09", "TES004", is_active=False, id="p4"))

        self.match = Match(opponent="Virtus")
        self.match.lineup = [LineupEntry("p1", 10, "ST"), LineupEntry("p2", 7, "MF")]
        self.match.periods = [Period(PeriodType.REGULAR, "1° Tempo", 900)]
        self.match.clock = MatchClockState.running(0)
        self.stats = MatchStatisticsService(self.match, self.roster)

    def test_summary_classifies_by_attribution(self) -> None:
        self.match.events = [
            event("e1", EventType.GOAL, 1, 0, Attribution.OWN, "p1"),
            event("e2", EventType.GOAL, 2, 0, Attribution.OPPONENT, "9"),
            event("e3", EventType.GOAL, 3, 0, Attribution.OWN, "p2"),
            event("e4", EventType.YELLOW_CARD, 4, 0, Attribution.OPPONENT, "9"),
            event("e5", EventType.BLUE_CARD, 5, 0, Attribution.OWN, "p1"),
            event("e6", EventType.WARNING, 6, 0, Attribution.OWN, "p1"),
            event("e7", EventType.CORNER, 7, 0, Attribution.OWN),
        ]
        self.match.substitutions = [substitution("s1", "p1", "p3", 8, 0)]

        summary = self.stats.summary()

        self.assertEqual(summary.own_goals, 2)
        self.assertEqual(summary.opponent_goals, 1)
        self.assertEqual(summary.own_cards, 1)
        self.assertEqual(summary.opponent_cards, 1)
        self.assertEqual(summary.total_cards, 2)
        self.assertEqual(summary.substitutions, 1)

    def test_activity_feed_ordering(self) -> None:
        self.match.events = [
            event("a", EventType.GOAL, 12, 10, player_ref="p1"),
            event("b", EventType.CORNER, 12, 30),
        ]
        self.match.substitutions = [substitution("c", "p1", "p3", 12, 20, 10, 14)]

        feed = self.stats.recent_activity()

        self.assertEqual([(i.minute, i.second) for i in feed], [(12, 30), (12, 20), (12, 10)])
        self.assertEqual([i.id for i in feed], ["b", "c", "a"])
        self.assertEqual(feed[1].type, "substitution")
        self.assertEqual(feed[1].description, "#10 Rossi ↔ #14 Verdi")

    def test_equal_stamps_keep_events_before_substitutions(self) -> None:
        self.match.events = [event("e1", EventType.GOAL, 5, 0), event("e2", EventType.FOUL, 5, 0)]
        self.match.substitutions = [substitution("s1", "p1", "p3", 5, 0)]
        self.assertEqual([i.id for i in self.stats.recent_activity()], ["e1", "e2", "s1"])

    def test_activity_feed_truncation(self) -> None:
        self.match.events = [event(f"e{i}", EventType.CORNER, i, 0) for i in range(10)]
        self.assertEqual(len(self.stats.recent_activity()), 8)
        compact = self.stats.recent_activity(5)
        self.assertEqual([i.id for i in compact], ["e9", "e8", "e7", "e6", "e5"])

    def test_category_timelines(self) -> None:
        self.match.events = [
            event("g1", EventType.GOAL, 1, 0),
            event("c1", EventType.EXPULSION, 2, 0),
            event("o1", EventType.OFFSIDE, 3, 0),
            event("g2", EventType.GOAL, 4, 0),
        ]
        self.assertEqual([e.id for e in self.stats.goal_timeline()], ["g2", "g1"])
        self.assertEqual([e.id for e in self.stats.card_timeline()], ["c1"])
        self.assertEqual([e.id for e in self.stats.other_event_timeline()], ["o1"])

    def test_players_on_field_and_bench(self) -> None:
        self.match.substitutions = [substitution("s1", "p1", "p3", 10, 0)]

        self.assertEqual([p.id for p in self.stats.players_on_field()], ["p3", "p2"])
        # p4 is inactive and never offered
        self.assertEqual([p.id for p in self.stats.players_on_bench()], ["p1"])

    def test_bench_without_roster_uses_known_ids(self) -> None:
        self.match.player_jersey_numbers = {"p9": 21}
        self.assertEqual(bench_ids(self.match), ["p9"])

    def test_jersey_resolution_order(self) -> None:
        self.match.player_jersey_numbers = {"p3": 14}
        self.match.substitutions = [substitution("s1", "p2", "p5", 1, 0, 7, 18)]

        self.assertEqual(resolve_jersey_number(self.match, "p1"), 10)
        self.assertEqual(resolve_jersey_number(self.match, "p3"), 14)
        self.assertEqual(resolve_jersey_number(self.match, "p5"), 18)
        self.assertEqual(resolve_jersey_number(self.match, "p1", snapshot=99), 99)
        self.assertEqual(self.stats.jersey_number_of("missing"), 0)
        self.assertEqual(format_jersey(0), "?")

    def test_displayed_jersey_prefers_lineup_over_jersey_map(self) -> None:
        self.match.player_jersey_numbers = {"p1": 7, "p5": 21, "p6": 23}
        self.match.substitutions = [substitution("s1", "p2", "p5", 1, 0, 7, 18)]

        self.assertEqual(self.stats.jersey_number_of("p1"), 10)
        self.assertEqual(self.stats.jersey_number_of("p5"), 18)
        self.assertEqual(self.stats.jersey_number_of("p6"), 23)
        # substitution snapshots still read the jersey map first
        self.assertEqual(resolve_jersey_number(self.match, "p1"), 7)

    def test_unknown_players_degrade_to_placeholders(self) -> None:
        self.match.substitutions = [substitution("s1", "p1", "ghost", 1, 0)]
        self.assertEqual(self.stats.player_label("ghost"), "Sconosciuto")
        self.assertEqual(self.stats.describe_substitution(self.match.substitutions[0]), "#10 Rossi ↔ #? Sconosciuto")

    def test_replay_field_rejects_inconsistent_ledger(self) -> None:
        subs = [substitution("s1", "p1", "p3", 1, 0), substitution("s2", "p3", "p4", 2, 0)]
        self.assertEqual(replay_field(["p1", "p2"], subs), ["p4", "p2"])
        with self.assertRaises(MatchStateError):
            replay_field(["p1", "p2"], subs[1:])
        with self.assertRaises(MatchStateError):
            replay_field(["p1", "p2"], [substitution("s3", "p1", "p2", 1, 0)])

    def test_period_summaries(self) -> None:
        self.match.periods.append(Period(PeriodType.INTERVAL, "Intervallo", 0))
        self.match.clock = MatchClockState.interval(1)

        summaries = self.stats.period_summaries()

        self.assertEqual([s.label for s in summaries], ["1° Tempo", "Intervallo"])
        self.assertEqual(summaries[0].formatted, "15:00")
        self.assertFalse(summaries[0].is_current)
        self.assertTrue(summaries[1].is_current)


class SeasonPlayerStatsTests(unittest.TestCase):
    def test_counts_only_finished_matches(self) -> None:
        players = [
            Player("Marco", "Rossi", "2010-05-15", "TES001", id="p1"),
            Player("Paolo", "Verdi", "2011-01-20", "TES003", id="p3"),
        ]
        finished = Match(opponent="Virtus")
        finished.periods = [Period(PeriodType.REGULAR, "1° Tempo", 10)]
        finished.clock = MatchClockState(ClockPhase.FINISHED, 0)
        finished.lineup = [LineupEntry("p1", 10)]
        finished.events = [
            event("e1", EventType.GOAL, 1, 0, Attribution.OWN, "p1"),
            event("e2", EventType.SECOND_YELLOW_CARD, 2, 0, Attribution.OWN, "p1"),
            event("e3", EventType.EXPULSION, 3, 0, Attribution.OWN, "p1"),
            event("e4", EventType.GOAL, 4, 0, Attribution.OPPONENT, "p1"),
        ]
        finished.substitutions = [substitution("s1", "p1", "p3", 5, 0)]

        live = Match(opponent="Audax")
        live.periods = [Period(PeriodType.REGULAR, "1° Tempo", 10)]
        live.clock = MatchClockState.running(0)
        live.lineup = [LineupEntry("p1", 10)]
        live.events = [event("e5", EventType.GOAL, 1, 0, Attribution.OWN, "p1")]

        stats = season_player_stats(players, [finished, live])

        self.assertEqual(stats["p1"].goals, 1)
        self.assertEqual(stats["p1"].yellow_cards, 1)
        self.assertEqual(stats["p1"].red_cards, 1)
        self.assertEqual(stats["p1"].matches_played, 1)
        self.assertEqual(stats["p3"].matches_played, 1)
        self.assertEqual(stats["p3"].goals, 0)


if __name__ == "__main__":
    unittest.main()
