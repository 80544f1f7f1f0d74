"""One-time import of exported game days and players into the database."""

import json
from pathlib import Path

from sqlalchemy.exc import IntegrityError

from pelada.app import db
from pelada.models import GameDay, GameDayCourt, MigrationMarker
from pelada.services.court_lifecycle import generate_join_code
from pelada.services.game_day_payloads import (
    normalize_court_fields,
    normalize_game_day_payload,
)
from pelada.services.player_registry import bulk_upsert, normalize_player_payload
from pelada.time_utils import parse_timestamp, utcnow_naive

TO_DATABASE = 'to-database'


def load_seed_file(file_path):
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f'Seed file not found: {path}')
    with path.open('r', encoding='utf-8') as handle:
        return json.load(handle)


def is_applied(name=TO_DATABASE):
    return MigrationMarker.query.filter_by(name=name).first() is not None


def _build_game_day(raw, idx, errors):
    game_day_fields, main_court_fields, item_errors = normalize_game_day_payload(
        {'isLive': False, **raw}
    )
    raw_courts = raw.get('extraCourts')
    courts = []
    if isinstance(raw_courts, list) and raw_courts:
        for court_idx, raw_court in enumerate(raw_courts):
            if not isinstance(raw_court, dict):
                item_errors.append(f'court #{court_idx + 1}: expected object')
                continue
            court_fields, court_errors = normalize_court_fields(
                {**raw, **raw_court}, partial=False,
            )
            item_errors.extend(court_errors)
            try:
                court_fields['matches'] = int(raw_court.get('matches') or 0)
            except (TypeError, ValueError):
                item_errors.append(f'court #{court_idx + 1}: matches must be a number')
            courts.append(court_fields)
    else:
        courts.append({**main_court_fields, 'matches': 0})

    if item_errors:
        errors.append(f'Game day #{idx + 1}: {", ".join(item_errors)}')
        return None

    join_code = str(raw.get('joinCode') or '').strip().upper() or generate_join_code()
    expiration = parse_timestamp(raw.get('joinCodeExpiration')) or utcnow_naive()
    game_day = GameDay(join_code=join_code[:4], join_code_expiration=expiration)
    for key, value in game_day_fields.items():
        if value is not None:
            setattr(game_day, key, value)
    for court_fields in courts:
        court = GameDayCourt()
        for key, value in court_fields.items():
            setattr(court, key, value)
        game_day.courts.append(court)
    return game_day


def import_seed_payload(payload, name=TO_DATABASE):
    """Apply ``payload`` once. Returns stats, or ``None`` if already applied."""
    if not isinstance(payload, dict):
        raise ValueError('Seed payload must be an object with players and gameDays.')
    if is_applied(name):
        return None

    raw_players = payload.get('players') or []
    raw_game_days = payload.get('gameDays') or []
    if not isinstance(raw_players, list) or not isinstance(raw_game_days, list):
        raise ValueError('players and gameDays must be lists.')

    errors = []
    players = []
    for idx, raw in enumerate(raw_players):
        data, item_errors = normalize_player_payload(raw)
        if item_errors:
            errors.append(f'Player #{idx + 1}: {", ".join(item_errors)}')
            continue
        players.append(data)
    game_days = []
    for idx, raw in enumerate(raw_game_days):
        if not isinstance(raw, dict):
            errors.append(f'Game day #{idx + 1}: expected object')
            continue
        game_day = _build_game_day(raw, idx, errors)
        if game_day is not None:
            game_days.append(game_day)
    if errors:
        raise ValueError('Invalid seed payload:\n- ' + '\n- '.join(errors))

    try:
        player_stats = bulk_upsert(players, commit=False)
        db.session.add_all(game_days)
        db.session.add(MigrationMarker(name=name))
        db.session.commit()
    except IntegrityError:
        # Another request applied the marker first.
        db.session.rollback()
        return None

    return {
        'applied': True,
        'players': player_stats['created'] + player_stats['updated'],
        'gameDays': len(game_days),
    }
