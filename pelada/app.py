from datetime import timedelta
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO
from flask_cors import CORS
from pelada.config import config

db = SQLAlchemy()
socketio = SocketIO()

DEFAULT_SECRET_KEY = 'dev-secret-key-change-in-prod'


def _parse_allowed_origins(raw_origins):
    if not raw_origins:
        return '*'

    if isinstance(raw_origins, (list, tuple, set)):
        cleaned = [origin for origin in raw_origins if origin]
        return cleaned or '*'

    raw_text = str(raw_origins).strip()
    if not raw_text or raw_text == '*':
        return '*'

    origins = [origin.strip() for origin in raw_text.split(',') if origin.strip()]
    return origins or '*'


def create_app(config_name='development'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    allowed_origins = _parse_allowed_origins(app.config.get('CORS_ALLOWED_ORIGINS', '*'))
    if str(config_name).strip().lower() == 'production':
        secret_key = str(app.config.get('SECRET_KEY') or '').strip()
        if not secret_key or secret_key == DEFAULT_SECRET_KEY:
            raise RuntimeError('SECRET_KEY must be set to a non-default value in production')
        if allowed_origins == '*':
            raise RuntimeError('CORS_ALLOWED_ORIGINS must be explicitly set in production')

    # Handlers must be declared before init_app builds the server.
    from pelada.routes import realtime  # noqa: F401

    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'threading'),
    )
    # Browsers refuse credentialed responses for a wildcard origin.
    CORS(app, origins=allowed_origins, supports_credentials=allowed_origins != '*')

    from pelada.services.court_lifecycle import CourtLifecycle
    from pelada.services.notifier import GameDayNotifier
    from pelada.session_binding import SessionBinder

    binder = SessionBinder(db.session)
    binder.init_app(app)
    notifier = GameDayNotifier(socketio)
    app.extensions['court_lifecycle'] = CourtLifecycle(
        db.session, binder, notifier,
        join_code_ttl=timedelta(hours=app.config.get('JOIN_CODE_TTL_HOURS', 24)),
    )

    from pelada.routes.game_days import game_days_bp
    from pelada.routes.sessions import sessions_bp
    from pelada.routes.players import players_bp
    from pelada.routes.migrations import migrations_bp

    app.register_blueprint(game_days_bp, url_prefix='/game-days')
    app.register_blueprint(sessions_bp, url_prefix='/sessions')
    app.register_blueprint(players_bp, url_prefix='/players')
    app.register_blueprint(migrations_bp, url_prefix='/migrations')

    with app.app_context():
        from pelada import models  # noqa: F401
        db.create_all()
    app.logger.info('Connected to the database')

    return app
