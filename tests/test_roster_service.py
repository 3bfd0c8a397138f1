"""
Unit tests for RosterService.

Tests player validation, bulk imports, groups and users, training attendance
and season statistics.
"""
import unittest
from datetime import date, timedelta

from squadra.models import (
    Attribution, ClockPhase, EventType, Group, LineupEntry, Match, MatchClockState, MatchEvent,
    Period, PeriodType, Player, Training,
)
from squadra.services import CSVImportError, PlayerValidationError, RosterService, csv_service


class TestRosterService(unittest.TestCase):
    """Test cases for RosterService functionality."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.roster = RosterService()
        self.rossi = self.roster.add_player(Player("Marco", "Rossi", "2010-05-15", "TES001"))

    def test_validate_player_reports_every_problem(self) -> None:
        future = (date.today() + timedelta(days=2)).isoformat()
        player = Player(" ", "", future, "", email="not-an-email")

        errors = self.roster.validate_player(player)

        self.assertIn("Il nome è obbligatorio", errors)
        self.assertIn("Il cognome è obbligatorio", errors)
        self.assertIn("Il numero di tessera è obbligatorio", errors)
        self.assertIn("La data di nascita non può essere nel futuro", errors)
        self.assertIn("Email non valida", errors)

    def test_duplicate_license_number_rejected(self) -> None:
        with self.assertRaises(PlayerValidationError):
            self.roster.add_player(Player("Luca", "Bianchi", "2011-01-01", "TES001"))
        self.assertEqual(len(self.roster.list_players()), 1)

    def test_numeric_fields_from_json_become_text(self) -> None:
        player = Player.from_dict({
            "first_name": "Luca", "last_name": "Bianchi", "birth_date": "2011-01-01",
            "license_number": 123,
        })
        self.assertEqual(player.license_number, "123")
        self.assertEqual(self.roster.validate_player(player), [])

    def test_update_and_remove_player(self) -> None:
        self.rossi.phone = "3331234567"
        self.roster.update_player(self.rossi)
        self.assertEqual(self.roster.get_player(self.rossi.id).phone, "3331234567")

        with self.assertRaises(KeyError):
            self.roster.update_player(Player("Ghost", "Player", "2010-01-01", "X"))

        self.roster.remove_player(self.rossi.id)
        self.assertIsNone(self.roster.get_player(self.rossi.id))

    def test_import_players_is_all_or_nothing(self) -> None:
        batch = [
            Player("Luca", "Bianchi", "2011-01-01", "TES002"),
            Player("Anna", "Verdi", "data", "TES003"),
        ]
        with self.assertRaises(PlayerValidationError) as ctx:
            self.roster.import_players(batch)
        self.assertIn("Giocatore 2", str(ctx.exception))
        self.assertEqual(len(self.roster.list_players()), 1)

    def test_import_players_rejects_duplicates_within_batch(self) -> None:
        batch = [
            Player("Luca", "Bianchi", "2011-01-01", "TES002"),
            Player("Anna", "Verdi", "2011-02-02", "TES002"),
        ]
        with self.assertRaises(PlayerValidationError):
            self.roster.import_players(batch)
        self.assertEqual(len(self.roster.list_players()), 1)

    def test_import_players_csv(self) -> None:
        content = csv_service.export_players_csv([Player("Luca", "Bianchi", "2011-01-01", "TES002")])
        imported = self.roster.import_players_csv(content)
        self.assertEqual(len(imported), 1)
        self.assertEqual(len(self.roster.list_players()), 2)

        with self.assertRaises(CSVImportError):
            self.roster.import_players_csv("Nome,Cognome\nLuca,Bianchi\n")

    def test_groups_and_users_from_csv(self) -> None:
        groups = self.roster.import_groups_csv(csv_service.groups_csv_template())
        self.assertEqual(groups[0].name, "Esempio Gruppo")
        self.assertTrue(groups[0].created_at)

        self.roster.add_group(Group(name="Amministratori"))
        users = self.roster.import_users_csv(csv_service.users_csv_template())
        self.assertEqual(users[0].username, "mario.rossi")
        self.assertEqual(len(self.roster.list_users()), 1)

        with self.assertRaises(ValueError):
            self.roster.import_users_csv(csv_service.users_csv_template())
        with self.assertRaises(ValueError):
            self.roster.import_groups_csv(csv_service.groups_csv_template())

    def test_group_with_users_cannot_be_removed(self) -> None:
        group = self.roster.add_group(Group(name="Amministratori"))
        self.roster.import_users_csv(csv_service.users_csv_template())
        with self.assertRaises(ValueError):
            self.roster.remove_group(group.id)

    def test_mark_attendance(self) -> None:
        training = self.roster.add_training(Training("2024-03-01"))
        self.roster.mark_attendance(training.id, self.rossi.id, True)
        self.assertEqual(self.roster.get_training(training.id).attendances, {self.rossi.id: True})

        with self.assertRaises(KeyError):
            self.roster.mark_attendance(training.id, "missing", True)
        with self.assertRaises(KeyError):
            self.roster.mark_attendance("missing", self.rossi.id, True)

        self.roster.remove_player(self.rossi.id)
        self.assertEqual(training.attendances, {})

    def test_trainings_listed_chronologically(self) -> None:
        self.roster.add_training(Training("2024-03-08"))
        self.roster.add_training(Training("2024-03-01"))
        self.assertEqual([t.date for t in self.roster.list_trainings()], ["2024-03-01", "2024-03-08"])

    def test_season_player_stats(self) -> None:
        match = Match(opponent="Virtus")
        match.periods = [Period(PeriodType.REGULAR, "1° Tempo", 60)]
        match.clock = MatchClockState(ClockPhase.FINISHED, 0)
        match.lineup = [LineupEntry(self.rossi.id, 10)]
        match.events = [MatchEvent("e1", EventType.GOAL, 1, 0, Attribution.OWN, "", self.rossi.id)]

        stats = self.roster.season_player_stats([match])

        self.assertEqual(stats[self.rossi.id].goals, 1)
        self.assertEqual(stats[self.rossi.id].matches_played, 1)


if __name__ == "__main__":
    unittest.main()
