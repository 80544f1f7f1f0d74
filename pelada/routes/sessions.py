"""The caller's bound game-day court."""
from flask import Blueprint, current_app, jsonify, request
from pelada.services.court_lifecycle import GameDayNotFound, InvalidPayload, SessionNotBound
from pelada.session_binding import binding_required

sessions_bp = Blueprint('sessions', __name__)


def _lifecycle():
    return current_app.extensions['court_lifecycle']


@sessions_bp.route('/game-day', methods=['GET'])
@binding_required(404)
def get_session_game_day():
    # A missing binding reads as "no active game day", not as an auth failure.
    try:
        view = _lifecycle().current_view()
    except (SessionNotBound, GameDayNotFound):
        return '', 404
    return jsonify(view)


@sessions_bp.route('/game-day', methods=['PUT'])
@binding_required(401)
def update_session_game_day():
    data = request.get_json(silent=True)
    try:
        _lifecycle().update_current(data if data is not None else {})
    except SessionNotBound:
        return '', 401
    except InvalidPayload as exc:
        return jsonify({'error': str(exc)}), 400
    except GameDayNotFound:
        return '', 404
    return '', 200


@sessions_bp.route('/game-day/leave', methods=['PUT'])
@binding_required(404)
def leave_session_game_day():
    """Vacate the bound court and drop the binding."""
    try:
        _lifecycle().leave_current()
    except SessionNotBound:
        return '', 404
    return '', 200
