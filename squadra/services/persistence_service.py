"""
Persistence service for the Squadra team management application.

This module handles saving and loading match state to/from JSON files.
"""
import datetime
import json
import logging
import os
from typing import List, Optional, Tuple

from ..models import ClockPhase, Match
from .timer_service import MatchTimerService

logger = logging.getLogger(__name__)


class PersistenceService:
    """
    Service for persisting match state to JSON files.

    A running clock is caught up before the snapshot is taken, so the saved
    periods hold every whole second played so far and the match can continue
    after loading.
    """

    @staticmethod
    def serialize_match(match: Match) -> dict:
        """
        Create a snapshot of match state suitable for saving.

        Args:
            match: Current match

        Returns:
            Dictionary suitable for JSON serialization
        """
        if match.clock.phase is ClockPhase.RUNNING:
            MatchTimerService(match).catch_up()
        return match.to_json()

    @staticmethod
    def deserialize_match(data: dict) -> Match:
        """
        Rebuild a match from a saved snapshot.

        Raises:
            ValueError: If the snapshot structure is invalid
        """
        try:
            return Match.from_json(data)
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid match data: {exc}") from exc

    @staticmethod
    def save_match_to_file(match: Match, file_path: str) -> None:
        """
        Save match state to a JSON file.

        Args:
            match: The match to save
            file_path: Path where to save the file

        Raises:
            IOError: If file cannot be written
            OSError: If path is invalid
        """
        snapshot = PersistenceService.serialize_match(match)

        directory = os.path.dirname(file_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2, ensure_ascii=False)
        logger.info("Saved match %s to %s", match.id, file_path)

    @staticmethod
    def load_match_from_file(file_path: str) -> Match:
        """
        Load match state from a JSON file.

        Args:
            file_path: Path to the JSON file to load

        Returns:
            Match instance loaded from file

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file contains invalid JSON
            ValueError: If JSON structure is invalid
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Match file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return PersistenceService.deserialize_match(data)

    @staticmethod
    def auto_save(match: Match, auto_save_dir: str = "autosave") -> Optional[str]:
        """
        Automatically save match state with timestamp.

        Args:
            match: Match to save
            auto_save_dir: Directory for auto-save files

        Returns:
            Path to saved file, or None if save failed
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"match_{match.id}_{timestamp}.json"
        file_path = os.path.join(auto_save_dir, filename)
        try:
            PersistenceService.save_match_to_file(match, file_path)
        except OSError as exc:
            logger.warning("Auto-save of match %s failed: %s", match.id, exc)
            return None
        return file_path

    @staticmethod
    def get_recent_saves(save_dir: str = ".", limit: int = 10) -> List[Tuple[str, float]]:
        """
        Get list of recent save files.

        Args:
            save_dir: Directory to search for save files
            limit: Maximum number of files to return

        Returns:
            List of tuples (filename, modification_time) sorted by newest first
        """
        if not os.path.exists(save_dir):
            return []

        try:
            json_files = []
            for filename in os.listdir(save_dir):
                if filename.endswith(".json"):
                    file_path = os.path.join(save_dir, filename)
                    if os.path.isfile(file_path):
                        json_files.append((filename, os.path.getmtime(file_path)))

            json_files.sort(key=lambda x: x[1], reverse=True)
            return json_files[:limit]
        except OSError:
            return []
