from flask import Blueprint, jsonify, request
from pelada.services.player_registry import (
    bulk_upsert,
    list_players,
    normalize_player_payload,
    upsert_player,
)

players_bp = Blueprint('players', __name__)


@players_bp.route('', methods=['GET'])
def get_players():
    """List players, optionally only those named in ``?name=a,b``."""
    raw_names = request.args.get('name')
    names = None
    if raw_names is not None:
        names = [name.strip() for name in raw_names.split(',') if name.strip()]
    return jsonify([player.to_dict() for player in list_players(names)])


@players_bp.route('', methods=['PUT'])
def put_player():
    """Insert a player unless one with the same name already exists."""
    data, errors = normalize_player_payload(request.get_json(silent=True))
    if errors:
        return jsonify({'error': ', '.join(errors)}), 400
    player, created = upsert_player(data['name'], data['mu'], data['sigma'])
    if not created:
        return '', 200
    return jsonify({'id': player.id}), 201


@players_bp.route('/bulk', methods=['PUT'])
def put_players_bulk():
    """Insert or overwrite the rating of every listed player."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, list):
        return jsonify({'error': 'Expected a list of players'}), 400

    entries = []
    errors = []
    for idx, raw in enumerate(payload):
        data, item_errors = normalize_player_payload(raw)
        if item_errors:
            errors.append(f'Player #{idx + 1}: {", ".join(item_errors)}')
            continue
        entries.append(data)
    if errors:
        return jsonify({'error': '; '.join(errors)}), 400

    bulk_upsert(entries)
    return '', 200
