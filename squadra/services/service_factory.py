"""
Service Factory for dependency injection.

This module provides a factory for creating properly configured service instances
with their dependencies injected.
"""
from typing import Callable, Optional

from ..models import Match
from .match_manager import MatchManager
from .persistence_service import PersistenceService
from .roster_service import RosterService


class ServiceFactory:
    """
    Factory for creating service instances with proper dependency injection.

    The roster and persistence services are shared singletons; match services
    are created per match and wired to the shared roster.
    """

    def __init__(self, roster_service: Optional[RosterService] = None):
        """Initialize factory with default configurations."""
        self._roster_service = roster_service
        self._persistence_service: Optional[PersistenceService] = None

    def create_match_manager(
        self,
        match: Optional[Match] = None,
        confirmer: Optional[Callable[[str], bool]] = None,
    ) -> MatchManager:
        """
        Create a MatchManager wired to the shared roster.

        Args:
            match: Match to manage (a new one when omitted)
            confirmer: Optional confirmation callback

        Returns:
            Configured MatchManager instance
        """
        return MatchManager(match, players=self.get_roster_service(), confirmer=confirmer)

    def get_roster_service(self) -> RosterService:
        """Get singleton roster service."""
        if self._roster_service is None:
            self._roster_service = RosterService()
        return self._roster_service

    def get_persistence_service(self) -> PersistenceService:
        """Get singleton persistence service."""
        if self._persistence_service is None:
            self._persistence_service = PersistenceService()
        return self._persistence_service
