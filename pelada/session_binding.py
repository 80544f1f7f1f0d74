"""Binds an opaque browser session cookie to a (game day, court) pair."""
import hashlib
import logging
import secrets
from datetime import timedelta
from functools import wraps
from flask import current_app, request
from sqlalchemy.exc import SQLAlchemyError
from pelada.models import ClientSession
from pelada.time_utils import utcnow_naive

logger = logging.getLogger(__name__)

_UNSET = object()


def _hash_token(token):
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class SessionBinder:
    """Server-side session store keyed by the ``pelada.sid`` cookie.

    Bindings are cached on the current request; cookie changes are written
    by an ``after_request`` hook so services never touch responses.
    """

    def __init__(self, session):
        self._session = session

    def init_app(self, app):
        app.after_request(self._write_cookie)

    def _cookie_name(self):
        return current_app.config.get('SESSION_BINDING_COOKIE_NAME', 'pelada.sid')

    def _max_age(self):
        return timedelta(days=current_app.config.get('SESSION_BINDING_MAX_AGE_DAYS', 7))

    def current(self):
        """Return the live binding for this request, or ``None``."""
        cached = getattr(request, 'session_binding', _UNSET)
        if cached is not _UNSET:
            return cached

        binding = None
        token = str(request.cookies.get(self._cookie_name()) or '').strip()
        if token:
            binding = ClientSession.query.filter_by(token_hash=_hash_token(token)).first()
            if binding and binding.expires_at <= utcnow_naive():
                self._discard(binding)
                binding = None
        request.session_binding = binding
        return binding

    def _discard(self, binding):
        try:
            self._session.delete(binding)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            logger.warning('Failed to delete expired session binding', exc_info=True)

    def bind(self, game_day_id, court_id):
        binding = self.current()
        token = str(request.cookies.get(self._cookie_name()) or '').strip()
        now = utcnow_naive()
        ClientSession.query.filter(ClientSession.expires_at <= now).delete(
            synchronize_session=False,
        )
        if binding is None:
            token = secrets.token_urlsafe(32)
            binding = ClientSession(token_hash=_hash_token(token))
            self._session.add(binding)

        binding.game_day_id = game_day_id
        binding.court_id = court_id
        binding.expires_at = now + self._max_age()
        self._session.commit()

        request.session_binding = binding
        request.session_cookie_token = token
        return binding

    def clear(self):
        """Destroy the binding; the cookie is dropped even if the delete fails."""
        request.session_cookie_cleared = True
        request.session_cookie_token = None
        binding = self.current()
        request.session_binding = None
        if binding is None:
            return False
        self._session.delete(binding)
        self._session.commit()
        return True

    def clear_game_day(self, game_day_id):
        """Drop every binding to ``game_day_id``. Returns the number removed."""
        removed = ClientSession.query.filter_by(game_day_id=game_day_id).delete(
            synchronize_session=False,
        )
        self._session.commit()
        return removed

    def _write_cookie(self, response):
        config = current_app.config
        name = self._cookie_name()
        domain = config.get('COOKIE_DOMAIN')
        token = getattr(request, 'session_cookie_token', None)
        if token:
            response.set_cookie(
                name, token,
                max_age=int(self._max_age().total_seconds()),
                path='/',
                domain=domain,
                httponly=True,
                secure=bool(config.get('SESSION_BINDING_COOKIE_SECURE', False)),
                samesite=config.get('SESSION_BINDING_COOKIE_SAMESITE', 'Lax'),
            )
        elif getattr(request, 'session_cookie_cleared', False):
            response.delete_cookie(
                name, path='/', domain=domain,
                secure=bool(config.get('SESSION_BINDING_COOKIE_SECURE', False)),
                samesite=config.get('SESSION_BINDING_COOKIE_SAMESITE', 'Lax'),
            )
        return response


def binding_required(missing_status):
    """Reject the request with ``missing_status`` and an empty body when unbound."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            binder = current_app.extensions['court_lifecycle'].binder
            if binder.current() is None:
                return '', missing_status
            return f(*args, **kwargs)
        return decorated
    return decorator
