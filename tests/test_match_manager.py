import unittest
from unittest.mock import MagicMock, patch

from squadra.models import Attribution, ClockPhase, EventType, LineupEntry, PeriodType, Player
from squadra.services import MatchManager, RosterService, ServiceFactory


class MatchManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("squadra.services.timer_service.now_ts", return_value=1000)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.roster = RosterService()
        self.rossi = self.roster.add_player(Player("Marco", "Rossi", "2010-05-15", "TES001"))
        self.verdi = self.roster.add_player(Player("Paolo", "Verdi", "2011-01-20", "TES003"))
        self.confirmer = MagicMock(return_value=True)
        self.manager = ServiceFactory(self.roster).create_match_manager(confirmer=self.confirmer)
        self.match = self.manager.match

    def test_rejection_sets_manage_error_and_success_clears_it(self) -> None:
        self.assertFalse(self.manager.pause())
        self.assertEqual(self.manager.manage_error, "Il cronometro non è in corso")

        self.assertTrue(self.manager.start())
        self.assertIsNone(self.manager.manage_error)

    def test_goal_removal_at_zero_reports_error(self) -> None:
        self.manager.start()
        self.assertFalse(self.manager.remove_goal(Attribution.OWN))
        self.assertIsNotNone(self.manager.manage_error)
        self.assertEqual(self.match.home_score, 0)

    def test_record_operations_return_records(self) -> None:
        self.manager.set_lineup([LineupEntry(self.rossi.id, 10)])
        self.manager.start()
        for _ in range(125):
            self.manager.tick()

        goal = self.manager.record_goal(Attribution.OWN, self.rossi.id)
        card = self.manager.record_card(EventType.YELLOW_CARD, player_id=self.rossi.id)
        other = self.manager.record_other_event(EventType.CORNER)
        sub = self.manager.substitute(self.rossi.id, self.verdi.id)

        self.assertEqual((goal.minute, goal.second), (2, 5))
        self.assertEqual(card.description, "Giallo a Rossi")
        self.assertEqual(other.type, EventType.CORNER)
        self.assertEqual(sub.player_out_jersey_number, 10)
        self.assertEqual([p.id for p in self.manager.players_on_field()], [self.verdi.id])
        self.assertEqual([p.id for p in self.manager.players_on_bench()], [self.rossi.id])
        self.assertEqual(self.manager.summary().own_goals, 1)
        self.assertEqual(len(self.manager.recent_activity()), 4)

        self.assertTrue(self.manager.remove_event(goal.id))
        self.assertEqual(self.match.home_score, 1)
        self.assertTrue(self.manager.remove_substitution(sub.id))

    def test_rejected_record_returns_none(self) -> None:
        self.assertIsNone(self.manager.record_goal(Attribution.OPPONENT, 9))
        self.assertEqual(self.manager.manage_error, "La partita non è ancora iniziata")

    def test_lineup_only_editable_before_start(self) -> None:
        self.assertFalse(self.manager.set_lineup([LineupEntry("a", 1), LineupEntry("a", 2)]))
        self.assertTrue(self.manager.set_lineup([LineupEntry(self.rossi.id, 10)]))
        self.assertTrue(self.manager.set_opponent_lineup([9, 3, 9]))
        self.assertEqual(self.match.opponent_lineup, [3, 9])
        self.assertTrue(self.manager.set_player_jersey_numbers({self.verdi.id: 14}))
        self.assertEqual(self.manager.jersey_number_of(self.verdi.id), 14)

        self.assertTrue(self.manager.set_player_jersey_numbers({self.rossi.id: 7}))
        self.assertEqual(self.manager.jersey_number_of(self.rossi.id), 10)

        self.manager.start()
        self.assertFalse(self.manager.set_lineup([]))
        self.assertEqual(len(self.match.lineup), 1)

    def test_remove_last_period_asks_for_confirmation(self) -> None:
        self.manager.start()
        self.manager.add_period(PeriodType.EXTRA)

        self.confirmer.return_value = False
        self.assertIsNone(self.manager.remove_last_period())
        self.assertEqual(len(self.match.periods), 2)
        self.confirmer.assert_called_once()

        self.confirmer.return_value = True
        removed = self.manager.remove_last_period()
        self.assertEqual(removed.label, "1° Supplementare")
        self.assertEqual(len(self.match.periods), 1)

    def test_remove_only_period_rejected(self) -> None:
        self.manager.start()
        self.assertIsNone(self.manager.remove_last_period(skip_confirmation=True))
        self.assertEqual(self.manager.manage_error, "Impossibile rimuovere l'unico periodo della partita")
        self.confirmer.assert_not_called()

    def test_finish_with_and_without_confirmation(self) -> None:
        self.manager.start()

        self.confirmer.return_value = False
        self.assertFalse(self.manager.finish())
        self.assertEqual(self.match.clock.phase, ClockPhase.RUNNING)

        self.assertTrue(self.manager.finish(skip_confirmation=True))
        self.assertEqual(self.match.clock.phase, ClockPhase.FINISHED)
        self.assertFalse(self.manager.start())

    def test_interval_blocks_ledger_changes(self) -> None:
        self.manager.start()
        goal = self.manager.record_goal(Attribution.OPPONENT, 9)
        self.assertTrue(self.manager.enter_interval())

        self.assertFalse(self.manager.remove_event(goal.id))
        self.assertEqual(self.manager.manage_error, "Operazione non consentita durante l'intervallo")
        self.assertEqual(len(self.match.events), 1)

    def test_default_manager_without_roster(self) -> None:
        manager = MatchManager()
        self.assertTrue(manager.start())
        self.assertEqual(manager.players_on_bench(), [])
        self.assertEqual(manager.period_summaries()[0].label, "1° Tempo")


if __name__ == "__main__":
    unittest.main()
