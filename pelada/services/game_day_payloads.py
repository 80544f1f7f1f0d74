"""Request normalization and response views for game days and courts."""

from pelada.time_utils import parse_timestamp

DEFAULT_MAX_POINTS = 12
DEFAULT_PLAYERS_PER_TEAM = '4'

_PLAYER_COUNTERS = ('matches', 'victories', 'defeats', 'lastPlayedMatch')


def _coerce_int(value, label, errors, minimum=0):
    if isinstance(value, bool):
        errors.append(f'{label} must be a number')
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f'{label} must be a number')
        return None
    if number < minimum:
        errors.append(f'{label} must be at least {minimum}')
        return None
    return number


def _coerce_bool(value, label, errors):
    if isinstance(value, bool):
        return value
    errors.append(f'{label} must be true or false')
    return None


def _coerce_players_per_team(value, errors):
    if isinstance(value, bool) or value is None:
        errors.append('playersPerTeam is required')
        return None
    text = str(value).strip()
    if not text or len(text) > 20:
        errors.append('playersPerTeam is invalid')
        return None
    return text


def normalize_game_day_player(raw, position, errors):
    """Keep only the embedded-player keys; ratings are merged at read time."""
    if not isinstance(raw, dict):
        errors.append(f'Player #{position + 1}: expected object')
        return None
    name = str(raw.get('name') or '').strip()
    if not name:
        errors.append(f'Player #{position + 1}: name is required')
        return None

    player = {'name': name}
    for key in _PLAYER_COUNTERS:
        try:
            player[key] = int(raw.get(key) or 0)
        except (TypeError, ValueError):
            errors.append(f'{name}: {key} must be a number')
            return None
    player['playing'] = bool(raw.get('playing', False))
    try:
        player['order'] = int(raw.get('order', position))
    except (TypeError, ValueError):
        player['order'] = position
    return player


def normalize_player_list(raw, label, errors):
    if raw is None:
        return []
    if not isinstance(raw, list):
        errors.append(f'{label} must be a list')
        return None
    cleaned = []
    for idx, item in enumerate(raw):
        player = normalize_game_day_player(item, idx, errors)
        if player is not None:
            cleaned.append(player)
    return cleaned


def normalize_playing_teams(raw, errors):
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(team, list) for team in raw):
        errors.append('playingTeams must be a list of teams')
        return None
    return [normalize_player_list(team, 'team', errors) or [] for team in raw]


def normalize_court_fields(data, partial=False):
    """Return ``(fields, errors)`` for the mutable court attributes in ``data``."""
    errors = []
    fields = {}

    if 'maxPoints' in data or not partial:
        value = _coerce_int(data.get('maxPoints', DEFAULT_MAX_POINTS), 'maxPoints', errors, minimum=1)
        if value is not None:
            fields['max_points'] = value
    if 'playersPerTeam' in data or not partial:
        value = _coerce_players_per_team(
            data.get('playersPerTeam', DEFAULT_PLAYERS_PER_TEAM), errors,
        )
        if value is not None:
            fields['players_per_team'] = value
    if 'autoSwitchTeamsPoints' in data or not partial:
        value = _coerce_int(data.get('autoSwitchTeamsPoints', 0), 'autoSwitchTeamsPoints', errors)
        if value is not None:
            fields['auto_switch_teams_points'] = value
    if 'playingTeams' in data or not partial:
        teams = normalize_playing_teams(data.get('playingTeams'), errors)
        if teams is not None:
            fields['playing_teams'] = teams
    if partial and 'matches' in data:
        value = _coerce_int(data.get('matches'), 'matches', errors)
        if value is not None:
            fields['matches'] = value

    return fields, errors


def normalize_game_day_payload(data):
    """Validate a create payload. Returns ``(game_day_fields, court_fields, errors)``."""
    if not isinstance(data, dict):
        return {}, {}, ['Invalid JSON payload']

    court_fields, errors = normalize_court_fields(data)
    game_day_fields = {
        'max_points': court_fields.get('max_points'),
        'players_per_team': court_fields.get('players_per_team'),
        'auto_switch_teams_points': court_fields.get('auto_switch_teams_points'),
    }

    players = normalize_player_list(data.get('players'), 'players', errors)
    waiting = normalize_player_list(data.get('playersToNextGame'), 'playersToNextGame', errors)
    game_day_fields['players'] = players or []
    game_day_fields['players_to_next_game'] = waiting or []

    if 'isLive' in data:
        is_live = _coerce_bool(data.get('isLive'), 'isLive', errors)
        game_day_fields['is_live'] = True if is_live is None else is_live
    else:
        game_day_fields['is_live'] = True

    if data.get('playedOn'):
        played_on = parse_timestamp(data.get('playedOn'))
        if played_on is None:
            errors.append('playedOn must be a valid ISO datetime')
        game_day_fields['played_on'] = played_on

    return game_day_fields, court_fields, errors


def normalize_session_patch(data):
    """Split a session update into ``(court_fields, game_day_fields, errors)``."""
    if not isinstance(data, dict):
        return {}, {}, ['Invalid JSON payload']

    court_fields, errors = normalize_court_fields(data, partial=True)
    game_day_fields = {}
    if 'players' in data:
        players = normalize_player_list(data.get('players'), 'players', errors)
        if players is not None:
            game_day_fields['players'] = players
    if 'playersToNextGame' in data:
        waiting = normalize_player_list(data.get('playersToNextGame'), 'playersToNextGame', errors)
        if waiting is not None:
            game_day_fields['players_to_next_game'] = waiting
    if 'isLive' in data:
        is_live = _coerce_bool(data.get('isLive'), 'isLive', errors)
        if is_live is not None:
            game_day_fields['is_live'] = is_live
    return court_fields, game_day_fields, errors


def reset_player_stats(players):
    """Copy a roster for a fresh game day: same names and order, zeroed counters."""
    fresh = []
    for idx, player in enumerate(players or []):
        fresh.append({
            'name': player.get('name'),
            'matches': 0,
            'victories': 0,
            'defeats': 0,
            'lastPlayedMatch': 0,
            'playing': False,
            'order': player.get('order', idx),
        })
    return fresh


def flatten_teams(courts, exclude_court_id=None):
    """All players seated on ``courts`` except those on ``exclude_court_id``."""
    flattened = []
    for court in courts:
        if court.id == exclude_court_id:
            continue
        for team in court.playing_teams:
            flattened.extend(team)
    return flattened


def build_session_view(game_day, court, players, last_match=None):
    """Session snapshot for one court.

    Court settings take precedence over the game-day settings they shadow.
    """
    view = {
        'id': game_day.id,
        'courtId': court.id,
        'players': players,
        'isLive': game_day.is_live,
        'playedOn': game_day.played_on.isoformat() if game_day.played_on else None,
        'joinCode': game_day.join_code,
        'joinCodeExpiration': (
            game_day.join_code_expiration.isoformat()
            if game_day.join_code_expiration else None
        ),
        'playersToNextGame': game_day.players_to_next_game,
        'maxPoints': game_day.max_points,
        'playersPerTeam': game_day.players_per_team,
        'autoSwitchTeamsPoints': game_day.auto_switch_teams_points,
    }
    view.update({
        'maxPoints': court.max_points,
        'playersPerTeam': court.players_per_team,
        'autoSwitchTeamsPoints': court.auto_switch_teams_points,
        'playingTeams': court.playing_teams,
        'matches': court.matches,
    })
    view['otherPlayingTeams'] = flatten_teams(game_day.courts, exclude_court_id=court.id)
    view['lastMatch'] = game_day.last_match if last_match is None else last_match
    return view
