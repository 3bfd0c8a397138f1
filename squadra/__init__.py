"""
Squadra - Registro Elettronico

Team management for a youth football club: player roster, training
attendance, live match management and CSV import/export.

This package provides the match lifecycle services and a Flask web
interface driving them.
"""
import logging

from . import config

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("werkzeug").setLevel(logging.WARNING)

from .models import Match, Player  # noqa: E402
from .services import MatchManager, PersistenceService, RosterService  # noqa: E402
from .ui import create_app, run_web_app  # noqa: E402
from .utils import APP_TITLE, fmt_mmss, now_ts  # noqa: E402

__version__ = "1.0.0"

__all__ = [
    "Match", "Player", "MatchManager", "PersistenceService", "RosterService",
    "create_app", "run_web_app", "fmt_mmss", "now_ts", "APP_TITLE"
]
