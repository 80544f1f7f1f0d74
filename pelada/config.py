import os

basedir = os.path.abspath(os.path.dirname(__file__))

DEFAULT_CORS_ORIGINS = 'http://127.0.0.1:5500,http://localhost:5500'


def _env_bool(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _normalize_database_url(raw_url):
    if not raw_url:
        return raw_url
    if raw_url.startswith('postgres://'):
        return raw_url.replace('postgres://', 'postgresql://', 1)
    return raw_url


class BaseConfig:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-prod')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', DEFAULT_CORS_ORIGINS)
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')
    SESSION_BINDING_COOKIE_NAME = os.environ.get('SESSION_BINDING_COOKIE_NAME', 'pelada.sid')
    SESSION_BINDING_MAX_AGE_DAYS = _env_int('SESSION_BINDING_MAX_AGE_DAYS', 7)
    SESSION_BINDING_COOKIE_SECURE = False
    SESSION_BINDING_COOKIE_SAMESITE = 'Lax'
    COOKIE_DOMAIN = os.environ.get('COOKIE_DOMAIN') or None
    JOIN_CODE_TTL_HOURS = _env_int('JOIN_CODE_TTL_HOURS', 24)
    SEED_DATA_PATH = os.environ.get('SEED_DATA_PATH', '')
    AUTO_SEED = _env_bool('AUTO_SEED', False)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(
        os.environ.get(
            'DATABASE_URL',
            'sqlite:///' + os.path.join(basedir, '..', 'pelada_dev.db')
        )
    )


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SEED_DATA_PATH = ''


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(os.environ.get('DATABASE_URL'))
    # Cross-site frontends only send the cookie with these attributes.
    SESSION_BINDING_COOKIE_SECURE = True
    SESSION_BINDING_COOKIE_SAMESITE = 'None'


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}
