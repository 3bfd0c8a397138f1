"""
CSV import/export for the Squadra team management application.

Exports are UTF-8 with a leading BOM, comma separated, with every field
double quoted. Imports tolerate the BOM, require a header row and are
all-or-nothing: the first invalid row raises :class:`CSVImportError` and no
record from the file is returned.
"""
import csv
import io
import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..models import Group, Permissions, Player, Training, User, UserStatus
from ..utils.constants import (
    ATTENDANCE_SUMMARY_HEADERS, CSV_BOM, CSV_DATE_FORMAT, DEFAULT_GROUP_ICON,
    GROUP_CSV_HEADERS, GROUP_CSV_REQUIRED, INACTIVE_WORDS, PLAYER_CSV_OPTIONAL,
    PLAYER_CSV_REQUIRED, TRUE_WORDS, USER_CSV_HEADERS,
)
from .errors import CSVImportError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Accepted input layouts, each with the group order of (day, month, year)
_DATE_PATTERNS = [
    (re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), (1, 2, 3)),
    (re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$"), (3, 2, 1)),
    (re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$"), (1, 2, 3)),
]

PLAYER_CSV_HEADERS = PLAYER_CSV_REQUIRED + PLAYER_CSV_OPTIONAL

GROUP_TEMPLATE_ROW = ["Esempio Gruppo", "Descrizione del gruppo", "Users", "SI", "NO", "SI", "SI"]
USER_TEMPLATE_ROW = [
    "Mario", "Rossi", "mario.rossi", "password123", "mario.rossi@email.com",
    "3331234567", "MAT001", "Attivo", "31/12/2025", "Amministratori",
]
PLAYER_TEMPLATE_ROW = [
    "Luca", "Bianchi", "15/05/2010", "TES001", "Attivo", "3331234567",
    "luca.bianchi@email.com", "Marco Bianchi", "3337654321", "marco.bianchi@email.com",
]


def parse_date(text: Any) -> Optional[str]:
    """
    Parse a date typed by a person into ``YYYY-MM-DD``.

    Accepts ``DD/MM/YYYY``, ``YYYY-MM-DD`` and ``DD-MM-YYYY``.

    Returns:
        The normalized date, or None when the text is not a real calendar date
    """
    if not text:
        return None
    text = str(text).strip()
    for pattern, (day_group, month_group, year_group) in _DATE_PATTERNS:
        found = pattern.match(text)
        if not found:
            continue
        try:
            parsed = date(
                int(found.group(year_group)),
                int(found.group(month_group)),
                int(found.group(day_group)),
            )
        except ValueError:
            return None
        return parsed.isoformat()
    return None


def format_date(value: Optional[str]) -> str:
    """Render an ISO date or timestamp as ``DD/MM/YYYY``; unknown text is returned as is."""
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value[:10]).strftime(CSV_DATE_FORMAT)
    except ValueError:
        return value


def _yes_no(flag: bool) -> str:
    return "SI" if flag else "NO"


def _to_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_WORDS


def _is_inactive(value: str) -> bool:
    return value.strip().lower() in INACTIVE_WORDS


# ----------------------------------------------------------------------
# Low-level reading and writing
# ----------------------------------------------------------------------
def write_csv(headers: Sequence[str], rows: Iterable[Sequence]) -> str:
    """Serialize rows with a BOM and every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return CSV_BOM + buffer.getvalue()


def read_csv(content: str, required_headers: Sequence[str]) -> List[Dict[str, str]]:
    """
    Parse CSV text into header-keyed rows.

    Each returned row carries its 1-based file line number under ``"__row__"``
    (the header is row 1). Blank lines are skipped but still counted.

    Raises:
        CSVImportError: If there is no data row or a required header is missing
    """
    if content.startswith(CSV_BOM):
        content = content[len(CSV_BOM):]

    reader = csv.reader(io.StringIO(content))
    lines = [(number, values) for number, values in enumerate(reader, start=1)
             if any(v.strip() for v in values)]
    if len(lines) < 2:
        raise CSVImportError(
            "Il file CSV deve contenere almeno una riga di intestazione e una di dati"
        )

    _, headers = lines[0]
    headers = [h.strip() for h in headers]
    missing = [h for h in required_headers if h not in headers]
    if missing:
        raise CSVImportError(f"Intestazioni mancanti nel CSV: {', '.join(missing)}")

    rows = []
    for number, values in lines[1:]:
        row = {header: (values[idx] if idx < len(values) else "").strip()
               for idx, header in enumerate(headers)}
        row["__row__"] = number
        rows.append(row)
    return rows


def _parse_rows(content: str, required_headers: Sequence[str], build: Callable) -> list:
    records = []
    for row in read_csv(content, required_headers):
        records.append(build(row, row["__row__"]))
    logger.info("Parsed %d rows from CSV", len(records))
    return records


# ----------------------------------------------------------------------
# Groups
# ----------------------------------------------------------------------
def export_groups_csv(groups: Iterable[Group]) -> str:
    headers = ["ID"] + GROUP_CSV_HEADERS + ["Data Creazione"]
    rows = [
        [
            group.id,
            group.name,
            group.description,
            group.icon or DEFAULT_GROUP_ICON,
            _yes_no(group.permissions.team_management),
            _yes_no(group.permissions.match_management),
            _yes_no(group.permissions.results_view),
            _yes_no(group.permissions.statistics_view),
            format_date(group.created_at),
        ]
        for group in groups
    ]
    return write_csv(headers, rows)


def parse_groups_csv(content: str) -> List[Group]:
    """Parse a groups CSV into new :class:`Group` drafts."""

    def build(row: Dict[str, str], number: int) -> Group:
        name = row.get("Nome", "")
        if not name:
            raise CSVImportError("Nome gruppo mancante", row=number)
        return Group(
            name=name,
            description=row.get("Descrizione", ""),
            icon=row.get("Icona") or DEFAULT_GROUP_ICON,
            permissions=Permissions(
                team_management=_to_bool(row.get("Gestione Squadra", "")),
                match_management=_to_bool(row.get("Gestione Partite", "")),
                results_view=_to_bool(row.get("Visualizzazione Risultati", "")),
                statistics_view=_to_bool(row.get("Visualizzazione Statistiche", "")),
            ),
        )

    return _parse_rows(content, GROUP_CSV_REQUIRED, build)


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
def export_users_csv(users: Iterable[User], groups: Iterable[Group]) -> str:
    """Export users without their passwords; the group is written by name."""
    group_names = {group.id: group.name for group in groups}
    headers = ["ID"] + [h for h in USER_CSV_HEADERS if h != "Password"] + ["Data Creazione"]
    rows = [
        [
            user.id,
            user.first_name,
            user.last_name,
            user.username,
            user.email,
            user.phone,
            user.matricola,
            "Attivo" if user.status is UserStatus.ACTIVE else "Disattivo",
            format_date(user.expiration_date),
            group_names.get(user.group_id, ""),
            format_date(user.created_at),
        ]
        for user in users
    ]
    return write_csv(headers, rows)


def parse_users_csv(content: str, groups: Iterable[Group]) -> List[User]:
    """
    Parse a users CSV into new :class:`User` drafts.

    ``Gruppo`` must match the name of one of ``groups`` exactly.
    """
    groups_by_name = {group.name: group for group in groups}

    def build(row: Dict[str, str], number: int) -> User:
        values = {header: row.get(header, "") for header in USER_CSV_HEADERS}
        required = [h for h in USER_CSV_HEADERS if h != "Stato"]
        if any(not values[header] for header in required):
            raise CSVImportError("Tutti i campi obbligatori devono essere compilati", row=number)

        group = groups_by_name.get(values["Gruppo"])
        if group is None:
            raise CSVImportError(f'Gruppo "{values["Gruppo"]}" non trovato', row=number)
        if not EMAIL_PATTERN.match(values["Email"]):
            raise CSVImportError("Email non valida", row=number)
        expiration = parse_date(values["Data Scadenza"])
        if expiration is None:
            raise CSVImportError(
                "Data di scadenza non valida. Formato accettato: DD/MM/YYYY", row=number
            )

        return User(
            first_name=values["Nome"],
            last_name=values["Cognome"],
            username=values["Username"],
            password=values["Password"],
            email=values["Email"],
            phone=values["Cellulare"],
            matricola=values["Matricola"],
            expiration_date=expiration,
            group_id=group.id,
            status=UserStatus.INACTIVE if _is_inactive(values["Stato"]) else UserStatus.ACTIVE,
        )

    return _parse_rows(content, USER_CSV_HEADERS, build)


# ----------------------------------------------------------------------
# Players
# ----------------------------------------------------------------------
def export_players_csv(players: Iterable[Player]) -> str:
    rows = [
        [
            player.first_name,
            player.last_name,
            format_date(player.birth_date),
            player.license_number,
            "Attivo" if player.is_active else "Disattivo",
            player.phone,
            player.email,
            player.parent_name,
            player.parent_phone,
            player.parent_email,
        ]
        for player in players
    ]
    return write_csv(PLAYER_CSV_HEADERS, rows)


def parse_players_csv(content: str) -> List[Player]:
    """Parse a players CSV into new :class:`Player` drafts."""

    def build(row: Dict[str, str], number: int) -> Player:
        if any(not row.get(header) for header in PLAYER_CSV_REQUIRED):
            raise CSVImportError("Nome, Cognome, Data Nascita e Numero Tessera sono obbligatori", row=number)
        birth_date = parse_date(row["Data Nascita"])
        if birth_date is None:
            raise CSVImportError(
                "Data di nascita non valida. Formati accettati: DD/MM/YYYY, YYYY-MM-DD, DD-MM-YYYY",
                row=number,
            )
        for header in ("Email", "Email Genitore"):
            if row.get(header) and not EMAIL_PATTERN.match(row[header]):
                raise CSVImportError(f"{header} non valida", row=number)

        return Player(
            first_name=row["Nome"],
            last_name=row["Cognome"],
            birth_date=birth_date,
            license_number=row["Numero Tessera"],
            is_active=not _is_inactive(row.get("Stato", "")),
            phone=row.get("Telefono") or None,
            email=row.get("Email") or None,
            parent_name=row.get("Nome Genitore") or None,
            parent_phone=row.get("Telefono Genitore") or None,
            parent_email=row.get("Email Genitore") or None,
        )

    return _parse_rows(content, PLAYER_CSV_REQUIRED, build)


# ----------------------------------------------------------------------
# Training attendance
# ----------------------------------------------------------------------
def export_training_attendance_csv(trainings: Iterable[Training], players: Iterable[Player]) -> str:
    """
    Export one row per player with a column per training date.

    Cells are ``Presente``/``Assente``, or ``N/A`` when attendance was not
    taken for that player. The percentage counts only trainings where it
    was. Rows are ordered by percentage, highest first.
    """
    ordered = sorted(trainings, key=lambda t: (t.date, t.time))
    headers = ["Cognome", "Nome"] + [format_date(t.date) for t in ordered] + ATTENDANCE_SUMMARY_HEADERS

    rows = []
    for player in sorted(players, key=lambda p: (p.last_name.lower(), p.first_name.lower())):
        cells = []
        present = absent = 0
        for training in ordered:
            attended = training.attendances.get(player.id)
            if attended is None:
                cells.append("N/A")
            elif attended:
                present += 1
                cells.append("Presente")
            else:
                absent += 1
                cells.append("Assente")
        counted = present + absent
        percentage = round(present * 100 / counted) if counted else 0
        rows.append((percentage, [player.last_name, player.first_name] + cells
                     + [present, counted, f"{percentage}%", absent]))

    rows.sort(key=lambda item: item[0], reverse=True)
    logger.info("Exported attendance for %d players over %d trainings", len(rows), len(ordered))
    return write_csv(headers, [row for _, row in rows])


# ----------------------------------------------------------------------
# Templates
# ----------------------------------------------------------------------
def groups_csv_template() -> str:
    return write_csv(GROUP_CSV_HEADERS, [GROUP_TEMPLATE_ROW])


def users_csv_template() -> str:
    return write_csv(USER_CSV_HEADERS, [USER_TEMPLATE_ROW])


def players_csv_template() -> str:
    return write_csv(PLAYER_CSV_HEADERS, [PLAYER_TEMPLATE_ROW])
