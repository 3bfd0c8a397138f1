"""
Web application module for Squadra.

This module contains the Flask web server that provides the JSON API for the
roster, training attendance, CSV exchange and live match management. Every
match request first catches the match clock up with wall-clock time, so the
server itself acts as the one-second clock.
"""
import logging
from typing import Dict, List, Optional

from flask import Flask, Response, jsonify, request

from .. import config
from ..models import (
    Attribution, EventType, Group, HomeAway, LineupEntry, Match, PeriodType, Player, Training,
)
from ..services import (
    CSVImportError, MatchManager, PlayerValidationError, ServiceFactory,
    csv_service,
)
from ..services.statistics_service import format_jersey, on_field_ids
from ..utils import APP_TITLE, RECENT_ACTIVITY_COMPACT, RECENT_ACTIVITY_FULL, fmt_mmss
from ..utils.constants import EVENT_LABELS, FINISHED_LABEL, PRE_MATCH_LABEL

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for the web application.

    One roster is shared by every match; each match gets its own manager.
    """

    def __init__(self, autosave_dir: Optional[str] = None):
        self.service_factory = ServiceFactory()
        self.roster = self.service_factory.get_roster_service()
        self.persistence_service = self.service_factory.get_persistence_service()
        self.managers: Dict[str, MatchManager] = {}
        self.autosave_dir = autosave_dir

    def add_match(self, match: Match) -> MatchManager:
        manager = self.service_factory.create_match_manager(match)
        self.managers[match.id] = manager
        return manager

    def matches(self) -> List[Match]:
        return [manager.match for manager in self.managers.values()]


def _ok(status: int = 200, **payload):
    return jsonify({"success": True, **payload}), status


def _fail(error: str, status: int = 400):
    return jsonify({"success": False, "error": error}), status


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _csv_body() -> str:
    """CSV text from an uploaded ``file``, a JSON ``csv`` field or the raw body."""
    upload = request.files.get("file")
    if upload is not None:
        return upload.read().decode("utf-8-sig")
    data = request.get_json(silent=True)
    if isinstance(data, dict) and "csv" in data:
        return data["csv"] or ""
    return request.get_data(as_text=True)


def _build_match_data(manager: MatchManager) -> dict:
    """Match snapshot plus the derived views a client renders."""
    match = manager.match
    current = match.current_period
    summary = manager.summary()
    data = match.to_json()
    data.update({
        "current_period_label": _phase_label(match),
        "current_elapsed": fmt_mmss(current.duration) if current else fmt_mmss(0),
        "total_played": fmt_mmss(manager.timer.get_total_played_seconds()),
        "period_summaries": [vars(p) for p in manager.period_summaries()],
        "on_field": [_lineup_view(manager, pid) for pid in on_field_ids(match)],
        "bench": [p.to_dict() for p in manager.players_on_bench()],
        "summary": {**vars(summary), "total_cards": summary.total_cards},
        "manage_error": manager.manage_error,
    })
    return data


def _phase_label(match: Match) -> str:
    if not match.has_started:
        return PRE_MATCH_LABEL
    if match.is_finished:
        return FINISHED_LABEL
    return match.current_period.label


def _lineup_view(manager: MatchManager, player_id: str) -> dict:
    player = manager.players.get_player(player_id) if manager.players else None
    return {
        "player_id": player_id,
        "name": player.full_name if player else manager.stats.player_label(player_id),
        "jersey": format_jersey(manager.jersey_number_of(player_id)),
    }


def create_app(state: Optional[WebAppState] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        state: Application state (a fresh one when omitted)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app_state = state or WebAppState()
    app.config["APP_STATE"] = app_state

    def _manager(match_id: str) -> Optional[MatchManager]:
        manager = app_state.managers.get(match_id)
        if manager is not None:
            manager.catch_up()
        return manager

    def _match_result(manager: MatchManager, ok: bool, status: int = 200, **extra):
        if not ok:
            return _fail(manager.manage_error or "Operazione non consentita", 400)
        if app_state.autosave_dir:
            app_state.persistence_service.auto_save(manager.match, app_state.autosave_dir)
        return _ok(status, match=_build_match_data(manager), **extra)

    @app.route("/api/info", methods=["GET"])
    def info():
        return jsonify({"title": APP_TITLE})

    # ==================== Matches ==================== #

    @app.route("/api/matches", methods=["GET"])
    def list_matches():
        return _ok(matches=[
            {"id": m.id, "opponent": m.opponent, "date": m.date, "status": m.status.value,
             "home_score": m.home_score, "away_score": m.away_score}
            for m in app_state.matches()
        ])

    @app.route("/api/matches", methods=["POST"])
    def create_match():
        data = request.get_json(silent=True) or {}
        if not (data.get("opponent") or "").strip():
            return _fail("L'avversario è obbligatorio")
        try:
            match = Match(
                opponent=data["opponent"].strip(),
                date=data.get("date", ""),
                time=data.get("time", ""),
                location=data.get("location", ""),
                pitch=data.get("field", ""),
                home_away=HomeAway(data.get("home_away", HomeAway.HOME.value)),
            )
        except ValueError as e:
            return _fail(str(e))
        manager = app_state.add_match(match)
        logger.info("Created match %s against %s", match.id, match.opponent)
        return _ok(201, match=_build_match_data(manager))

    @app.route("/api/matches/<match_id>", methods=["GET"])
    def get_match(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        return _ok(match=_build_match_data(manager))

    @app.route("/api/matches/<match_id>", methods=["DELETE"])
    def delete_match(match_id: str):
        if app_state.managers.pop(match_id, None) is None:
            return _fail("Partita non trovata", 404)
        return _ok()

    @app.route("/api/matches/<match_id>/lineup", methods=["POST"])
    def set_lineup(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        data = request.get_json(silent=True) or {}
        try:
            entries = [
                LineupEntry(e["player_id"], int(e["jersey_number"]), e.get("position", ""))
                for e in data.get("lineup", [])
            ]
            opponent = [int(n) for n in data.get("opponent_lineup", [])]
            numbers = {str(k): int(v) for k, v in (data.get("jersey_numbers") or {}).items()}
        except (KeyError, TypeError, ValueError) as e:
            return _fail(f"Formazione non valida: {e}")

        ok = manager.set_lineup(entries)
        if ok and "opponent_lineup" in data:
            ok = manager.set_opponent_lineup(opponent)
        if ok and "jersey_numbers" in data:
            ok = manager.set_player_jersey_numbers(numbers)
        return _match_result(manager, ok)

    # ==================== Timer and periods ==================== #

    @app.route("/api/matches/<match_id>/timer/<action>", methods=["POST"])
    def timer_action(match_id: str, action: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        if action == "start":
            ok = manager.start()
        elif action == "pause":
            ok = manager.pause()
        elif action == "interval":
            ok = manager.enter_interval()
        elif action == "finish":
            ok = manager.finish(skip_confirmation=True)
        else:
            return _fail(f"Azione sconosciuta: {action}", 404)
        return _match_result(manager, ok)

    @app.route("/api/matches/<match_id>/periods", methods=["POST"])
    def add_period(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        data = request.get_json(silent=True) or {}
        try:
            period_type = PeriodType(data.get("type", PeriodType.REGULAR.value))
        except ValueError:
            return _fail("Tipo di periodo non valido")
        return _match_result(manager, manager.add_period(period_type))

    @app.route("/api/matches/<match_id>/periods/last", methods=["DELETE"])
    def remove_last_period(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        removed = manager.remove_last_period(skip_confirmation=True)
        return _match_result(manager, removed is not None)

    # ==================== Ledgers ==================== #

    @app.route("/api/matches/<match_id>/goals", methods=["POST"])
    def record_goal(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        data = request.get_json(silent=True) or {}
        try:
            side = Attribution(data.get("side", Attribution.OWN.value))
        except ValueError:
            return _fail("Squadra non valida")
        event = manager.record_goal(side, data.get("scorer"))
        return _match_result(manager, event is not None, 201, event=event.to_dict() if event else None)

    @app.route("/api/matches/<match_id>/goals/<side>", methods=["DELETE"])
    def remove_goal(match_id: str, side: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        try:
            attribution = Attribution(side)
        except ValueError:
            return _fail("Squadra non valida")
        return _match_result(manager, manager.remove_goal(attribution))

    @app.route("/api/matches/<match_id>/cards", methods=["POST"])
    def record_card(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        data = request.get_json(silent=True) or {}
        try:
            kind = EventType(data.get("kind", ""))
            jersey = data.get("opponent_jersey")
            jersey = int(jersey) if jersey not in (None, "") else None
        except ValueError:
            return _fail("Ammonizione non valida")
        event = manager.record_card(kind, data.get("player_id") or None, jersey)
        return _match_result(manager, event is not None, 201, event=event.to_dict() if event else None)

    @app.route("/api/matches/<match_id>/events", methods=["POST"])
    def record_event(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        data = request.get_json(silent=True) or {}
        try:
            kind = EventType(data.get("kind", ""))
            attribution = Attribution(data.get("attribution", Attribution.OWN.value))
        except ValueError:
            return _fail("Evento non valido")
        event = manager.record_other_event(
            kind, data.get("description", ""), attribution, str(data.get("player_ref") or "")
        )
        return _match_result(manager, event is not None, 201, event=event.to_dict() if event else None)

    @app.route("/api/matches/<match_id>/events/<event_id>", methods=["DELETE"])
    def remove_event(match_id: str, event_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        if not any(e.id == event_id for e in manager.match.events):
            return _fail("Evento non trovato", 404)
        return _match_result(manager, manager.remove_event(event_id))

    @app.route("/api/matches/<match_id>/substitutions", methods=["POST"])
    def substitute(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        data = request.get_json(silent=True) or {}
        substitution = manager.substitute(data.get("player_out", ""), data.get("player_in", ""))
        return _match_result(
            manager, substitution is not None, 201,
            substitution=substitution.to_dict() if substitution else None,
        )

    @app.route("/api/matches/<match_id>/substitutions/<substitution_id>", methods=["DELETE"])
    def remove_substitution(match_id: str, substitution_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        if not any(s.id == substitution_id for s in manager.match.substitutions):
            return _fail("Sostituzione non trovata", 404)
        return _match_result(manager, manager.remove_substitution(substitution_id))

    # ==================== Derived views ==================== #

    @app.route("/api/matches/<match_id>/stats", methods=["GET"])
    def match_stats(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        summary = manager.summary()
        return _ok(
            summary={**vars(summary), "total_cards": summary.total_cards},
            goals=[e.to_dict() for e in manager.goal_timeline()],
            cards=[e.to_dict() for e in manager.card_timeline()],
            other_events=[e.to_dict() for e in manager.other_event_timeline()],
            substitutions=[
                {**s.to_dict(), "description": manager.stats.describe_substitution(s)}
                for s in manager.substitution_timeline()
            ],
            periods=[vars(p) for p in manager.period_summaries()],
        )

    @app.route("/api/matches/<match_id>/activity", methods=["GET"])
    def match_activity(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        compact = request.args.get("view") == "compact"
        limit = request.args.get(
            "limit", RECENT_ACTIVITY_COMPACT if compact else RECENT_ACTIVITY_FULL, type=int
        )
        return _ok(activity=[
            {**vars(item), "stamp": item.stamp, "label": EVENT_LABELS.get(item.type, item.type)}
            for item in manager.recent_activity(limit)
        ])

    # ==================== Save / load ==================== #

    @app.route("/api/matches/<match_id>/save", methods=["POST"])
    def save_match(match_id: str):
        manager = _manager(match_id)
        if manager is None:
            return _fail("Partita non trovata", 404)
        return _ok(data=app_state.persistence_service.serialize_match(manager.match))

    @app.route("/api/matches/load", methods=["POST"])
    def load_match():
        data = request.get_json(silent=True) or {}
        match_data = data.get("match_data")
        if not match_data:
            return _fail("Nessun dato partita fornito")
        try:
            match = app_state.persistence_service.deserialize_match(match_data)
        except ValueError as e:
            return _fail(str(e))
        manager = app_state.add_match(match)
        return _ok(match=_build_match_data(manager))

    # ==================== Roster ==================== #

    @app.route("/api/players", methods=["GET"])
    def list_players():
        if request.args.get("active") in ("1", "true"):
            players = app_state.roster.active_players()
        else:
            players = app_state.roster.list_players()
        return _ok(players=[p.to_dict() for p in players])

    @app.route("/api/players", methods=["POST"])
    def create_player():
        data = request.get_json(silent=True) or {}
        data.pop("id", None)
        birth_date = csv_service.parse_date(data.get("birth_date")) or data.get("birth_date", "")
        player = Player.from_dict({**data, "birth_date": birth_date})
        try:
            app_state.roster.add_player(player)
        except PlayerValidationError as e:
            return _fail(str(e))
        return _ok(201, player=player.to_dict())

    @app.route("/api/players/<player_id>", methods=["GET"])
    def get_player(player_id: str):
        player = app_state.roster.get_player(player_id)
        if player is None:
            return _fail("Giocatore non trovato", 404)
        return _ok(player=player.to_dict())

    @app.route("/api/players/<player_id>", methods=["PUT"])
    def update_player(player_id: str):
        current = app_state.roster.get_player(player_id)
        if current is None:
            return _fail("Giocatore non trovato", 404)
        data = {**current.to_dict(), **(request.get_json(silent=True) or {}), "id": player_id}
        try:
            player = app_state.roster.update_player(Player.from_dict(data))
        except PlayerValidationError as e:
            return _fail(str(e))
        return _ok(player=player.to_dict())

    @app.route("/api/players/<player_id>", methods=["DELETE"])
    def delete_player(player_id: str):
        if app_state.roster.get_player(player_id) is None:
            return _fail("Giocatore non trovato", 404)
        app_state.roster.remove_player(player_id)
        return _ok()

    @app.route("/api/players/stats", methods=["GET"])
    def player_stats():
        stats = app_state.roster.season_player_stats(app_state.matches())
        return _ok(stats={pid: vars(entry) for pid, entry in stats.items()})

    @app.route("/api/groups", methods=["GET"])
    def list_groups():
        return _ok(groups=[g.to_dict() for g in app_state.roster.list_groups()])

    @app.route("/api/groups", methods=["POST"])
    def create_group():
        data = request.get_json(silent=True) or {}
        data.pop("id", None)
        try:
            group = app_state.roster.add_group(Group.from_dict(data))
        except ValueError as e:
            return _fail(str(e))
        return _ok(201, group=group.to_dict())

    @app.route("/api/users", methods=["GET"])
    def list_users():
        return _ok(users=[u.to_dict() for u in app_state.roster.list_users()])

    @app.route("/api/users/<user_id>", methods=["GET"])
    def get_user(user_id: str):
        user = app_state.roster.get_user(user_id)
        if user is None:
            return _fail("Utente non trovato", 404)
        return _ok(user=user.to_dict())

    @app.route("/api/users/<user_id>", methods=["DELETE"])
    def delete_user(user_id: str):
        if app_state.roster.get_user(user_id) is None:
            return _fail("Utente non trovato", 404)
        app_state.roster.remove_user(user_id)
        return _ok()

    # ==================== CSV ==================== #

    @app.route("/api/players/import", methods=["POST"], defaults={"kind": "players"})
    @app.route("/api/groups/import", methods=["POST"], defaults={"kind": "groups"})
    @app.route("/api/users/import", methods=["POST"], defaults={"kind": "users"})
    def import_csv(kind: str):
        importers = {
            "players": app_state.roster.import_players_csv,
            "groups": app_state.roster.import_groups_csv,
            "users": app_state.roster.import_users_csv,
        }
        if kind not in importers:
            return _fail(f"Importazione non supportata: {kind}", 404)
        try:
            records = importers[kind](_csv_body())
        except (CSVImportError, PlayerValidationError) as e:
            logger.info("CSV import of %s rejected: %s", kind, e)
            return _fail(str(e), 422)
        except ValueError as e:
            return _fail(str(e), 422)
        return _ok(imported=len(records), records=[r.to_dict() for r in records])

    @app.route("/api/players/export", methods=["GET"], defaults={"kind": "players"})
    @app.route("/api/groups/export", methods=["GET"], defaults={"kind": "groups"})
    @app.route("/api/users/export", methods=["GET"], defaults={"kind": "users"})
    def export_csv(kind: str):
        roster = app_state.roster
        if kind == "players":
            return _csv_response(csv_service.export_players_csv(roster.list_players()), "giocatori.csv")
        if kind == "groups":
            return _csv_response(csv_service.export_groups_csv(roster.list_groups()), "gruppi.csv")
        if kind == "users":
            return _csv_response(
                csv_service.export_users_csv(roster.list_users(), roster.list_groups()), "utenti.csv"
            )
        return _fail(f"Esportazione non supportata: {kind}", 404)

    @app.route("/api/players/template", methods=["GET"], defaults={"kind": "players"})
    @app.route("/api/groups/template", methods=["GET"], defaults={"kind": "groups"})
    @app.route("/api/users/template", methods=["GET"], defaults={"kind": "users"})
    def csv_template(kind: str):
        templates = {
            "players": csv_service.players_csv_template,
            "groups": csv_service.groups_csv_template,
            "users": csv_service.users_csv_template,
        }
        if kind not in templates:
            return _fail(f"Template non disponibile: {kind}", 404)
        return _csv_response(templates[kind](), f"template_{kind}.csv")

    # ==================== Trainings ==================== #

    @app.route("/api/trainings", methods=["GET"])
    def list_trainings():
        return _ok(trainings=[t.to_dict() for t in app_state.roster.list_trainings()])

    @app.route("/api/trainings", methods=["POST"])
    def create_training():
        data = request.get_json(silent=True) or {}
        training_date = csv_service.parse_date(data.get("date"))
        if training_date is None:
            return _fail("Data allenamento non valida")
        training = app_state.roster.add_training(Training(date=training_date, time=data.get("time", "")))
        return _ok(201, training=training.to_dict())

    @app.route("/api/trainings/<training_id>", methods=["DELETE"])
    def delete_training(training_id: str):
        if app_state.roster.get_training(training_id) is None:
            return _fail("Allenamento non trovato", 404)
        app_state.roster.remove_training(training_id)
        return _ok()

    @app.route("/api/trainings/<training_id>/attendance", methods=["POST"])
    def mark_attendance(training_id: str):
        data = request.get_json(silent=True) or {}
        try:
            app_state.roster.mark_attendance(
                training_id, data.get("player_id", ""), bool(data.get("present", False))
            )
        except KeyError:
            return _fail("Allenamento o giocatore non trovato", 404)
        return _ok(training=app_state.roster.get_training(training_id).to_dict())

    @app.route("/api/trainings/attendance/export", methods=["GET"])
    def export_attendance():
        content = csv_service.export_training_attendance_csv(
            app_state.roster.list_trainings(), app_state.roster.list_players()
        )
        return _csv_response(content, "presenze_allenamenti.csv")

    return app


def run_web_app(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (defaults to ``SQUADRA_HOST``)
        port: Port number to listen on (defaults to ``SQUADRA_PORT``)
    """
    app = create_app(WebAppState(autosave_dir=config.AUTOSAVE_DIR))
    logger.info("Starting %s on %s:%s", APP_TITLE, host or config.HOST, port or config.PORT)
    app.run(host=host or config.HOST, port=port or config.PORT, debug=False)
