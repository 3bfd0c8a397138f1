"""
Services package for the Squadra team management application.

This package contains business logic services for the match lifecycle,
the team roster, CSV exchange and persistence.
"""
from .errors import CSVImportError, MatchStateError, PlayerValidationError
from .timer_service import MatchTimerService
from .ledger_service import MatchLedgerService
from .statistics_service import (
    MatchStatisticsService, PlayerDirectory, resolve_jersey_number, season_player_stats
)
from .match_manager import MatchManager
from .roster_service import RosterService
from .persistence_service import PersistenceService
from .service_factory import ServiceFactory
from . import csv_service

__all__ = [
    "CSVImportError", "MatchStateError", "PlayerValidationError",
    "MatchTimerService", "MatchLedgerService", "MatchStatisticsService",
    "PlayerDirectory", "resolve_jersey_number", "season_player_stats",
    "MatchManager", "RosterService", "PersistenceService", "ServiceFactory",
    "csv_service",
]
