"""
Constants for the Squadra team management application.

This module contains the fixed labels, event groupings and CSV layouts used
throughout the application. The locale is Italian and is not configurable.
"""

# Application metadata
APP_TITLE = "Squadra - Registro Elettronico"

# Period labels
REGULAR_PERIOD_LABEL = "{number}° Tempo"
EXTRA_PERIOD_LABEL = "{number}° Supplementare"
INTERVAL_LABEL = "Intervallo"

# Status labels shown while no period is current
PRE_MATCH_LABEL = "Pre-Partita"
FINISHED_LABEL = "Terminata"

# Recent activity feed sizes
RECENT_ACTIVITY_COMPACT = 5
RECENT_ACTIVITY_FULL = 8

# Jersey numbers start at 1; 0 marks a number that could not be resolved
UNKNOWN_JERSEY = 0
UNKNOWN_JERSEY_TEXT = "?"
UNKNOWN_PLAYER_TEXT = "Sconosciuto"

# Event groupings
CARD_EVENT_TYPES = ("yellow-card", "red-card", "second-yellow-card", "blue-card")
DISCIPLINARY_EVENT_TYPES = CARD_EVENT_TYPES + ("expulsion", "warning")
OTHER_EVENT_TYPES = ("foul", "corner", "offside", "free-kick", "penalty", "throw-in", "injury")
REASON_REQUIRED_EVENT_TYPES = ("foul", "penalty", "injury")
OWN_TEAM_ONLY_EVENT_TYPES = ("injury",)

EVENT_LABELS = {
    "goal": "Goal",
    "yellow-card": "Giallo",
    "red-card": "Rosso",
    "second-yellow-card": "Secondo giallo",
    "blue-card": "Blu",
    "expulsion": "Espulsione",
    "warning": "Richiamo",
    "foul": "Fallo",
    "corner": "Calcio d'angolo",
    "offside": "Fuorigioco",
    "free-kick": "Calcio di punizione",
    "penalty": "Rigore",
    "throw-in": "Rimessa laterale",
    "injury": "Infortunio",
    "substitution": "Sostituzione",
}

# Card descriptions: own player by surname, opponent by jersey number
CARD_DESCRIPTIONS_OWN = {
    "yellow-card": "Giallo a {name}",
    "second-yellow-card": "Secondo giallo a {name}",
    "red-card": "Rosso a {name}",
    "blue-card": "Blu a {name}",
    "expulsion": "Espulsione {name}",
    "warning": "Richiamo a {name}",
}
CARD_DESCRIPTIONS_OPPONENT = {
    "yellow-card": "Giallo a maglia avversaria #{jersey}",
    "second-yellow-card": "Secondo giallo a maglia avversaria #{jersey}",
    "red-card": "Rosso a maglia avversaria #{jersey}",
    "blue-card": "Blu a maglia avversaria #{jersey}",
    "expulsion": "Espulsione maglia avversaria #{jersey}",
    "warning": "Richiamo a maglia avversaria #{jersey}",
}
OWN_GOAL_DESCRIPTION = "Goal di {name} (nostro)"
OPPONENT_GOAL_DESCRIPTION = "Goal avversario #{jersey}"

# CSV layouts
CSV_BOM = "\ufeff"
CSV_DATE_FORMAT = "%d/%m/%Y"

GROUP_CSV_HEADERS = [
    "Nome", "Descrizione", "Icona", "Gestione Squadra", "Gestione Partite",
    "Visualizzazione Risultati", "Visualizzazione Statistiche",
]
GROUP_CSV_REQUIRED = [
    "Nome", "Descrizione", "Gestione Squadra", "Gestione Partite",
    "Visualizzazione Risultati", "Visualizzazione Statistiche",
]
USER_CSV_HEADERS = [
    "Nome", "Cognome", "Username", "Password", "Email", "Cellulare",
    "Matricola", "Stato", "Data Scadenza", "Gruppo",
]
PLAYER_CSV_REQUIRED = ["Nome", "Cognome", "Data Nascita", "Numero Tessera"]
PLAYER_CSV_OPTIONAL = [
    "Stato", "Telefono", "Email", "Nome Genitore", "Telefono Genitore", "Email Genitore",
]
ATTENDANCE_SUMMARY_HEADERS = ["Presenze", "Allenamenti", "Percentuale", "Assenze"]

DEFAULT_GROUP_ICON = "Users"
TRUE_WORDS = ("si", "true", "1", "vero")
INACTIVE_WORDS = ("disattivo", "inactive", "no", "false")
