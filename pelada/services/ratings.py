"""Read-side enrichment of game-day rosters with Player Registry ratings."""

from pelada.models import Player

RATING_FIELDS = ('mu', 'sigma')


def merge_ratings(roster):
    """Inner-join ``roster`` entries with registry players by name.

    Registry ratings overwrite the embedded entry; roster entries with no
    registry player are dropped. Roster order is preserved.
    """
    names = {entry.get('name') for entry in roster if entry.get('name')}
    if not names:
        return []
    registry = {
        player.name: player
        for player in Player.query.filter(Player.name.in_(names)).all()
    }

    merged = []
    for entry in roster:
        player = registry.get(entry.get('name'))
        if player is None:
            continue
        enriched = dict(entry)
        for field in RATING_FIELDS:
            enriched[field] = getattr(player, field)
        merged.append(enriched)
    return merged


def merged_players_for(game_day):
    return merge_ratings(game_day.players)
