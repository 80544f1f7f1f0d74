"""Player Registry: unique-by-name players with a (mu, sigma) rating."""

from sqlalchemy.exc import IntegrityError

from pelada.app import db
from pelada.models import DEFAULT_MU, DEFAULT_SIGMA, Player


def _coerce_rating(value, default, label, errors):
    if value is None:
        return default
    if isinstance(value, bool):
        errors.append(f'{label} must be a number')
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        errors.append(f'{label} must be a number')
        return None


def normalize_player_payload(raw):
    """Return ``(data, errors)`` for a ``{name, mu, sigma}`` object."""
    if not isinstance(raw, dict):
        return None, ['expected object']
    errors = []
    name = str(raw.get('name') or '').strip()
    if not name:
        errors.append('name is required')
    elif len(name) > 120:
        errors.append('name is too long')
    mu = _coerce_rating(raw.get('mu'), DEFAULT_MU, 'mu', errors)
    sigma = _coerce_rating(raw.get('sigma'), DEFAULT_SIGMA, 'sigma', errors)
    if errors:
        return None, errors
    return {'name': name, 'mu': mu, 'sigma': sigma}, []


def find_player(name):
    return Player.query.filter_by(name=name).first()


def upsert_player(name, mu, sigma):
    """Insert if absent. An existing player's rating is left untouched.

    Returns ``(player, created)``.
    """
    existing = find_player(name)
    if existing:
        return existing, False
    player = Player(name=name, mu=mu, sigma=sigma)
    db.session.add(player)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request inserted the same name first.
        db.session.rollback()
        existing = find_player(name)
        if existing is None:
            raise
        return existing, False
    return player, True


def bulk_upsert(entries, commit=True):
    """Insert-or-overwrite each entry in order. Returns ``{created, updated}``."""
    names = {entry['name'] for entry in entries}
    by_name = {
        player.name: player
        for player in Player.query.filter(Player.name.in_(names)).all()
    } if names else {}

    created = 0
    updated = 0
    for entry in entries:
        player = by_name.get(entry['name'])
        if player is None:
            player = Player(name=entry['name'])
            db.session.add(player)
            by_name[entry['name']] = player
            created += 1
        else:
            updated += 1
        player.mu = entry['mu']
        player.sigma = entry['sigma']

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return {'created': created, 'updated': updated}


def list_players(names=None):
    query = Player.query
    if names is not None:
        query = query.filter(Player.name.in_(names))
    return query.order_by(Player.id.asc()).all()
