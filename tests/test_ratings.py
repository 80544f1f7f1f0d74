"""Tests for roster rating enrichment."""
from pelada.app import db
from pelada.models import Player
from pelada.services.ratings import merge_ratings


def _roster_entry(name, order):
    return {'name': name, 'matches': 0, 'victories': 0, 'defeats': 0,
            'lastPlayedMatch': 0, 'playing': False, 'order': order}


def test_merge_ratings_is_an_inner_join(app):
    db.session.add(Player(name='Ana', mu=25, sigma=8))
    db.session.commit()

    merged = merge_ratings([_roster_entry('Ana', 0), _roster_entry('Bob', 1)])

    assert merged == [{**_roster_entry('Ana', 0), 'mu': 25, 'sigma': 8}]


def test_merge_ratings_keeps_roster_order_and_overwrites_embedded_values(app):
    db.session.add_all([
        Player(name='Ana', mu=25, sigma=8),
        Player(name='Cid', mu=31, sigma=2),
    ])
    db.session.commit()
    stale = {**_roster_entry('Cid', 0), 'mu': 1, 'sigma': 1}

    merged = merge_ratings([stale, _roster_entry('Ana', 1)])

    assert [p['name'] for p in merged] == ['Cid', 'Ana']
    assert (merged[0]['mu'], merged[0]['sigma']) == (31, 2)


def test_merge_ratings_of_empty_roster(app):
    assert merge_ratings([]) == []
