from flask import Blueprint, current_app, jsonify, request
from pelada.services.seed_import import import_seed_payload, load_seed_file

migrations_bp = Blueprint('migrations', __name__)


@migrations_bp.route('/to-database', methods=['POST'])
def migrate_to_database():
    """Import exported players and game days once; later calls are no-ops."""
    payload = request.get_json(silent=True)
    if not payload:
        seed_path = current_app.config.get('SEED_DATA_PATH')
        if not seed_path:
            return jsonify({'error': 'Seed payload required'}), 400
        try:
            payload = load_seed_file(seed_path)
        except FileNotFoundError as exc:
            return jsonify({'error': str(exc)}), 400

    try:
        result = import_seed_payload(payload)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    if result is None:
        return jsonify({'applied': False}), 200

    current_app.logger.info(
        'Migration to-database applied: %s players, %s game days',
        result['players'], result['gameDays'],
    )
    return jsonify(result), 201
