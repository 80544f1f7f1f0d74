"""Game day / court lifecycle: create, restart, join, transfer, update, leave.

Court list mutations are single statements (an INSERT for a new court, a
filtered UPDATE on ``(game_day_id, court_id)``) so concurrent joiners and
updaters never overwrite each other's courts.
"""
import json
import logging
import secrets
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from pelada.models import GameDay, GameDayCourt
from pelada.services.game_day_payloads import (
    build_session_view,
    normalize_game_day_payload,
    normalize_session_patch,
    reset_player_stats,
)
from pelada.services.ratings import merged_players_for
from pelada.time_utils import utcnow_naive

logger = logging.getLogger(__name__)

JOIN_CODE_BYTES = 2

_JSON_COLUMNS = {
    'playing_teams': 'playing_teams_json',
    'players': 'players_json',
    'players_to_next_game': 'players_to_next_game_json',
}


class GameDayNotFound(LookupError):
    """No live game day, matching join code, or bound court."""


class SessionNotBound(LookupError):
    """The request carries no session binding."""


class InvalidPayload(ValueError):
    def __init__(self, errors):
        super().__init__('; '.join(errors))
        self.errors = errors


def generate_join_code():
    """Four uppercase hex characters. Uniqueness is not checked."""
    return secrets.token_hex(JOIN_CODE_BYTES).upper()


def _column_values(fields):
    values = {}
    for key, value in fields.items():
        if key in _JSON_COLUMNS:
            values[_JSON_COLUMNS[key]] = json.dumps(value)
        else:
            values[key] = value
    return values


class CourtLifecycle:
    def __init__(self, session, binder, notifier, join_code_ttl=timedelta(hours=24),
                 clock=utcnow_naive):
        self.session = session
        self.binder = binder
        self.notifier = notifier
        self.join_code_ttl = join_code_ttl
        self.clock = clock

    # ── Lookups ────────────────────────────────────────────────────────

    def list_game_days(self):
        return GameDay.query.order_by(GameDay.played_on.desc(), GameDay.id.desc()).all()

    def find_by_join_code(self, code):
        normalized = str(code or '').strip().upper()
        if not normalized:
            return None
        # Codes may collide; the most recently refreshed game day wins.
        return GameDay.query.filter(
            GameDay.join_code == normalized,
            GameDay.join_code_expiration > self.clock(),
        ).order_by(GameDay.join_code_expiration.desc(), GameDay.id.desc()).first()

    def _last_match(self, game_day_id):
        last = self.session.query(func.max(GameDayCourt.matches)).filter(
            GameDayCourt.game_day_id == game_day_id,
        ).scalar()
        return last or 0

    # ── Creation ───────────────────────────────────────────────────────

    def _open_game_day(self, game_day_fields, court_fields):
        join_code = generate_join_code()
        game_day = GameDay(
            join_code=join_code,
            join_code_expiration=self.clock() + self.join_code_ttl,
        )
        for key, value in game_day_fields.items():
            if value is not None:
                setattr(game_day, key, value)
        court = GameDayCourt(matches=0)
        for key, value in court_fields.items():
            setattr(court, key, value)
        game_day.courts.append(court)
        self.session.add(game_day)
        self.session.commit()

        self.binder.bind(game_day.id, court.id)
        return {'id': game_day.id, 'courtId': court.id, 'joinCode': join_code}

    def create(self, data):
        game_day_fields, court_fields, errors = normalize_game_day_payload(data)
        if errors:
            raise InvalidPayload(errors)
        created = self._open_game_day(game_day_fields, court_fields)
        logger.info('Game day %s created with court %s', created['id'], created['courtId'])
        return created

    def restart(self, game_day_id):
        """Open a fresh live game day configured like ``game_day_id``."""
        source = self.session.get(GameDay, game_day_id)
        if source is None:
            raise GameDayNotFound(game_day_id)

        template = source.main_court or source
        game_day_fields = {
            'players': reset_player_stats(source.players),
            'players_to_next_game': [],
            'is_live': True,
            'played_on': self.clock(),
            'max_points': source.max_points,
            'players_per_team': source.players_per_team,
            'auto_switch_teams_points': source.auto_switch_teams_points,
        }
        court_fields = {
            'max_points': template.max_points,
            'players_per_team': template.players_per_team,
            'auto_switch_teams_points': template.auto_switch_teams_points,
            'playing_teams': [],
        }
        created = self._open_game_day(game_day_fields, court_fields)
        logger.info('Game day %s restarted as %s', game_day_id, created['id'])
        return created

    # ── Join / transfer ────────────────────────────────────────────────

    def join(self, code):
        game_day = self.find_by_join_code(code)
        if game_day is None:
            raise GameDayNotFound(code)

        game_day_id = game_day.id
        last_match = self._last_match(game_day_id)
        court = GameDayCourt(
            game_day_id=game_day_id,
            max_points=game_day.max_points,
            players_per_team=game_day.players_per_team,
            auto_switch_teams_points=game_day.auto_switch_teams_points,
            playing_teams=[],
            matches=last_match + 1,
        )
        self.session.add(court)
        GameDay.query.filter_by(id=game_day_id).update(
            {'join_code_expiration': self.clock() + self.join_code_ttl},
            synchronize_session=False,
        )
        self.session.commit()

        self.binder.bind(game_day_id, court.id)
        self.notifier.updated(game_day_id)
        logger.info('Court %s joined game day %s', court.id, game_day_id)

        game_day = self.session.get(GameDay, game_day_id)
        return build_session_view(game_day, court, game_day.players, last_match=last_match)

    def transfer(self, code):
        game_day = self.find_by_join_code(code)
        if game_day is None:
            raise GameDayNotFound(code)
        main_court = game_day.main_court
        if main_court is None:
            raise GameDayNotFound(code)

        self.binder.bind(game_day.id, main_court.id)
        self.notifier.transferred(game_day.id)
        logger.info('Main court %s of game day %s transferred', main_court.id, game_day.id)
        return build_session_view(game_day, main_court, merged_players_for(game_day))

    # ── Bound session ──────────────────────────────────────────────────

    def _require_binding(self):
        binding = self.binder.current()
        if binding is None:
            raise SessionNotBound()
        return binding

    def current_view(self):
        binding = self._require_binding()
        game_day = GameDay.query.filter_by(id=binding.game_day_id, is_live=True).first()
        if game_day is None:
            raise GameDayNotFound(binding.game_day_id)
        court = next((c for c in game_day.courts if c.id == binding.court_id), None)
        if court is None:
            raise GameDayNotFound(binding.court_id)
        return build_session_view(game_day, court, merged_players_for(game_day))

    def update_current(self, patch):
        binding = self._require_binding()
        court_fields, game_day_fields, errors = normalize_session_patch(patch)
        if errors:
            raise InvalidPayload(errors)
        game_day_id = binding.game_day_id
        court_id = binding.court_id
        ending = game_day_fields.get('is_live') is False

        try:
            court_query = GameDayCourt.query.filter_by(id=court_id, game_day_id=game_day_id)
            if court_fields:
                matched = court_query.update(
                    _column_values(court_fields), synchronize_session=False,
                )
            else:
                matched = court_query.count()
            if not matched:
                self.session.rollback()
                raise GameDayNotFound(court_id)
            if game_day_fields:
                GameDay.query.filter_by(id=game_day_id).update(
                    _column_values(game_day_fields), synchronize_session=False,
                )
            self.session.commit()
        finally:
            if ending:
                self._destroy_binding()

        if ending:
            self._release_participants(game_day_id)
        self.notifier.updated(game_day_id)

    def leave_current(self):
        binding = self._require_binding()
        game_day_id = binding.game_day_id
        court_id = binding.court_id
        try:
            matched = GameDayCourt.query.filter_by(
                id=court_id, game_day_id=game_day_id,
            ).update({'playing_teams_json': '[]'}, synchronize_session=False)
            self.session.commit()
        finally:
            self._destroy_binding()

        if matched:
            self.notifier.updated(game_day_id)
        logger.info('Court %s left game day %s', court_id, game_day_id)

    def _destroy_binding(self):
        try:
            self.binder.clear()
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning('Failed to destroy session binding', exc_info=True)

    def _release_participants(self, game_day_id):
        try:
            removed = self.binder.clear_game_day(game_day_id)
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning('Failed to release bindings for game day %s', game_day_id,
                           exc_info=True)
            return
        logger.info('Game day %s ended, %s other binding(s) released', game_day_id, removed)
