"""WSGI entrypoint used by Gunicorn."""
import os

from pelada.app import create_app
from pelada.services.seed_import import import_seed_payload, load_seed_file

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

if app.config.get('AUTO_SEED') and app.config.get('SEED_DATA_PATH'):
    with app.app_context():
        try:
            result = import_seed_payload(load_seed_file(app.config['SEED_DATA_PATH']))
        except (FileNotFoundError, ValueError) as exc:
            app.logger.error('Seed import failed: %s', exc)
        else:
            if result:
                app.logger.info(
                    'Seeded %s players and %s game days', result['players'], result['gameDays'],
                )
