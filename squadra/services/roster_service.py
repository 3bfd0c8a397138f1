"""
Roster service for the Squadra team management application.

This module keeps the players, permission groups, users and training sessions
of the team, validates players and applies bulk CSV imports. It is also the
player directory the match services use for bench and name lookups.
"""
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from ..models import Group, Match, Player, PlayerSeasonStats, Training, User
from .csv_service import EMAIL_PATTERN, parse_groups_csv, parse_players_csv, parse_users_csv
from .errors import PlayerValidationError
from .statistics_service import season_player_stats

logger = logging.getLogger(__name__)


class RosterService:
    """
    Service class for managing team records.

    Records are kept in insertion order and looked up by id. Missing ids
    return None from getters and raise KeyError from mutators.
    """

    def __init__(self) -> None:
        self._players: Dict[str, Player] = {}
        self._groups: Dict[str, Group] = {}
        self._users: Dict[str, User] = {}
        self._trainings: Dict[str, Training] = {}

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------
    def validate_player(self, player: Player) -> List[str]:
        """
        Validate player data and return list of validation errors.

        Args:
            player: Player instance to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not player.first_name or not player.first_name.strip():
            errors.append("Il nome è obbligatorio")
        if not player.last_name or not player.last_name.strip():
            errors.append("Il cognome è obbligatorio")
        if not player.license_number or not player.license_number.strip():
            errors.append("Il numero di tessera è obbligatorio")

        if not player.birth_date:
            errors.append("La data di nascita è obbligatoria")
        else:
            try:
                born = date.fromisoformat(player.birth_date)
            except ValueError:
                errors.append("Data di nascita non valida")
            else:
                if born > date.today():
                    errors.append("La data di nascita non può essere nel futuro")

        for label, email in (("Email", player.email), ("Email genitore", player.parent_email)):
            if email and not self._is_valid_email(email):
                errors.append(f"{label} non valida")

        duplicate = next(
            (p for p in self._players.values()
             if p.id != player.id and p.license_number == player.license_number),
            None,
        )
        if duplicate is not None and player.license_number:
            errors.append(f"Numero di tessera già usato da {duplicate.full_name}")

        return errors

    def add_player(self, player: Player) -> Player:
        """
        Add a validated player.

        Raises:
            PlayerValidationError: If player data is invalid
        """
        self._validate_or_raise(player)
        self._players[player.id] = player
        logger.info("Added player %s (%s)", player.full_name, player.id)
        return player

    def update_player(self, player: Player) -> Player:
        if player.id not in self._players:
            raise KeyError(player.id)
        self._validate_or_raise(player)
        self._players[player.id] = player
        return player

    def remove_player(self, player_id: str) -> Player:
        player = self._players.pop(player_id)
        for training in self._trainings.values():
            training.attendances.pop(player_id, None)
        logger.info("Removed player %s", player_id)
        return player

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def list_players(self) -> List[Player]:
        return list(self._players.values())

    def active_players(self) -> List[Player]:
        return [p for p in self._players.values() if p.is_active]

    def import_players(self, players: Iterable[Player]) -> List[Player]:
        """
        Add a batch of players, all or none.

        Raises:
            PlayerValidationError: Listing every invalid player by position
        """
        players = list(players)
        staged = RosterService()
        staged._players = dict(self._players)
        errors = []
        for i, player in enumerate(players, start=1):
            player_errors = staged.validate_player(player)
            if player_errors:
                errors.append(f"Giocatore {i}: {'; '.join(player_errors)}")
            else:
                staged._players[player.id] = player
        if errors:
            raise PlayerValidationError("Errori di importazione:\n" + "\n".join(errors))

        self._players = staged._players
        logger.info("Imported %d players", len(players))
        return players

    def import_players_csv(self, content: str) -> List[Player]:
        return self.import_players(parse_players_csv(content))

    # ------------------------------------------------------------------
    # Groups and users
    # ------------------------------------------------------------------
    def add_group(self, group: Group) -> Group:
        if not group.name.strip():
            raise ValueError("Il nome del gruppo è obbligatorio")
        if any(g.name == group.name and g.id != group.id for g in self._groups.values()):
            raise ValueError(f'Il gruppo "{group.name}" esiste già')
        if not group.created_at:
            group.created_at = datetime.now().isoformat(timespec="seconds")
        self._groups[group.id] = group
        return group

    def remove_group(self, group_id: str) -> Group:
        if any(u.group_id == group_id for u in self._users.values()):
            raise ValueError("Il gruppo ha ancora utenti associati")
        return self._groups.pop(group_id)

    def get_group(self, group_id: str) -> Optional[Group]:
        return self._groups.get(group_id)

    def list_groups(self) -> List[Group]:
        return list(self._groups.values())

    def import_groups_csv(self, content: str) -> List[Group]:
        groups = parse_groups_csv(content)
        names = [g.name for g in self._groups.values()] + [g.name for g in groups]
        clashes = sorted({name for name in names if names.count(name) > 1})
        if clashes:
            raise ValueError(f"Gruppi già presenti: {', '.join(clashes)}")
        for group in groups:
            self.add_group(group)
        logger.info("Imported %d groups", len(groups))
        return groups

    def add_user(self, user: User) -> User:
        if user.group_id not in self._groups:
            raise ValueError("Gruppo non trovato")
        if any(u.username == user.username and u.id != user.id for u in self._users.values()):
            raise ValueError(f'Username "{user.username}" già in uso')
        if not user.created_at:
            user.created_at = datetime.now().isoformat(timespec="seconds")
        self._users[user.id] = user
        return user

    def remove_user(self, user_id: str) -> User:
        return self._users.pop(user_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def list_users(self) -> List[User]:
        return list(self._users.values())

    def import_users_csv(self, content: str) -> List[User]:
        users = parse_users_csv(content, self._groups.values())
        usernames = [u.username for u in self._users.values()] + [u.username for u in users]
        clashes = sorted({name for name in usernames if usernames.count(name) > 1})
        if clashes:
            raise ValueError(f"Username già in uso: {', '.join(clashes)}")
        for user in users:
            self.add_user(user)
        logger.info("Imported %d users", len(users))
        return users

    # ------------------------------------------------------------------
    # Trainings
    # ------------------------------------------------------------------
    def add_training(self, training: Training) -> Training:
        self._trainings[training.id] = training
        return training

    def remove_training(self, training_id: str) -> Training:
        return self._trainings.pop(training_id)

    def get_training(self, training_id: str) -> Optional[Training]:
        return self._trainings.get(training_id)

    def list_trainings(self) -> List[Training]:
        return sorted(self._trainings.values(), key=lambda t: (t.date, t.time))

    def mark_attendance(self, training_id: str, player_id: str, present: bool) -> None:
        """
        Mark player attendance for a training session.

        Raises:
            KeyError: If the training or the player does not exist
        """
        training = self._trainings[training_id]
        if player_id not in self._players:
            raise KeyError(player_id)
        training.attendances[player_id] = present

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def season_player_stats(self, matches: Iterable[Match]) -> Dict[str, PlayerSeasonStats]:
        return season_player_stats(self._players.values(), matches)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _validate_or_raise(self, player: Player) -> None:
        errors = self.validate_player(player)
        if errors:
            raise PlayerValidationError(f"Dati giocatore non validi: {'; '.join(errors)}")

    def _is_valid_email(self, email: str) -> bool:
        """
        Validate email format (basic validation).

        Args:
            email: Email address string

        Returns:
            True if email appears valid
        """
        if not email:
            return True  # Empty email is valid (optional field)
        return EMAIL_PATTERN.match(email) is not None
