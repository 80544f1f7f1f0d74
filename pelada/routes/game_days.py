"""Game days — list, create, restart, join by code, transfer main court."""
from flask import Blueprint, current_app, jsonify, request
from pelada.services.court_lifecycle import GameDayNotFound, InvalidPayload

game_days_bp = Blueprint('game_days', __name__)


def _lifecycle():
    return current_app.extensions['court_lifecycle']


@game_days_bp.route('', methods=['GET'])
def list_game_days():
    """All game days, newest first."""
    return jsonify([game_day.to_dict() for game_day in _lifecycle().list_game_days()])


@game_days_bp.route('', methods=['POST'])
def create_game_day():
    """Create a live game day with its main court and bind this session to it."""
    data = request.get_json(silent=True)
    try:
        created = _lifecycle().create(data if data is not None else {})
    except InvalidPayload as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify(created), 201


@game_days_bp.route('/<int:game_day_id>/restart', methods=['POST'])
def restart_game_day(game_day_id):
    try:
        created = _lifecycle().restart(game_day_id)
    except GameDayNotFound:
        return '', 404
    return jsonify(created), 201


@game_days_bp.route('/join/<code>', methods=['PUT'])
def join_game_day(code):
    """Open a new court on the game day behind ``code``."""
    try:
        view = _lifecycle().join(code)
    except GameDayNotFound:
        return '', 404
    return jsonify(view)


@game_days_bp.route('/transfer/<code>', methods=['PUT'])
def transfer_game_day(code):
    """Take control of the main court of the game day behind ``code``."""
    try:
        view = _lifecycle().transfer(code)
    except GameDayNotFound:
        return '', 404
    return jsonify(view)
