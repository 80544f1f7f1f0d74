"""Tests for game day creation, join codes, joining and main-court transfer."""
import json
import re
from datetime import timedelta

from pelada.app import db
from pelada.models import ClientSession, GameDay, GameDayCourt
from pelada.time_utils import utcnow_naive

_JOIN_CODE = re.compile(r'^[0-9A-F]{4}$')


def _create(client, payload):
    res = client.post('/game-days', json=payload)
    assert res.status_code == 201
    return json.loads(res.data)


def _team(*names):
    return [{'name': name, 'matches': 0, 'victories': 0, 'defeats': 0,
             'lastPlayedMatch': 0, 'playing': True, 'order': idx}
            for idx, name in enumerate(names)]


def test_create_game_day_returns_ids_and_join_code(client, game_day_payload):
    created = _create(client, game_day_payload)

    assert set(created) == {'id', 'courtId', 'joinCode'}
    assert _JOIN_CODE.match(created['joinCode'])

    game_day = db.session.get(GameDay, created['id'])
    assert game_day.is_live is True
    assert [court.id for court in game_day.courts] == [created['courtId']]
    main = game_day.main_court
    assert main.matches == 0
    assert main.max_points == 2
    assert main.players_per_team == '4'
    expires_in = game_day.join_code_expiration - utcnow_naive()
    assert timedelta(hours=23, minutes=59) < expires_in <= timedelta(hours=24)


def test_create_game_day_binds_creator_to_main_court(client, game_day_payload):
    created = _create(client, game_day_payload)

    res = client.get('/sessions/game-day')
    assert res.status_code == 200
    view = json.loads(res.data)
    assert view['id'] == created['id']
    assert view['courtId'] == created['courtId']
    assert view['joinCode'] == created['joinCode']


def test_create_game_day_rejects_invalid_payload(client):
    res = client.post('/game-days', json={'maxPoints': 'lots', 'playersPerTeam': '4'})
    assert res.status_code == 400
    assert 'maxPoints' in json.loads(res.data)['error']

    res = client.post('/game-days', json={'players': [{'matches': 3}]})
    assert res.status_code == 400
    assert GameDay.query.count() == 0


def test_list_game_days_newest_first(client, game_day_payload):
    older = _create(client, {**game_day_payload, 'playedOn': '2024-01-01T10:00:00Z'})
    newer = _create(client, {**game_day_payload, 'playedOn': '2024-06-01T10:00:00Z'})

    res = client.get('/game-days')
    assert res.status_code == 200
    game_days = json.loads(res.data)
    assert [g['id'] for g in game_days] == [newer['id'], older['id']]
    assert game_days[0]['extraCourts'][0]['id'] == newer['courtId']
    assert game_days[0]['playersPerTeam'] == '4'

    again = json.loads(client.get('/game-days').data)
    assert again == game_days


def test_join_creates_new_court_with_empty_teams(client, other_client, game_day_payload):
    created = _create(client, game_day_payload)

    res = other_client.put(f'/game-days/join/{created["joinCode"]}')
    assert res.status_code == 200
    view = json.loads(res.data)
    assert view['id'] == created['id']
    assert view['courtId'] != created['courtId']
    assert view['playingTeams'] == []
    assert view['matches'] == 1
    assert view['maxPoints'] == 2
    assert view['playersPerTeam'] == '4'
    assert view['lastMatch'] == 0
    assert view['otherPlayingTeams'] == []

    game_day = db.session.get(GameDay, created['id'])
    assert len(game_day.courts) == 2


def test_join_matches_follow_busiest_court(client, other_client, app, game_day_payload):
    created = _create(client, {**game_day_payload, 'playingTeams': [_team('Ana'), _team('Bob')]})
    GameDayCourt.query.filter_by(id=created['courtId']).update({'matches': 7})
    db.session.commit()

    view = json.loads(other_client.put(f'/game-days/join/{created["joinCode"]}').data)
    assert view['matches'] == 8
    assert view['lastMatch'] == 7
    assert [p['name'] for p in view['otherPlayingTeams']] == ['Ana', 'Bob']

    third = app.test_client()
    view = json.loads(third.put(f'/game-days/join/{created["joinCode"]}').data)
    assert view['matches'] == 9
    assert view['lastMatch'] == 8
    assert len(db.session.get(GameDay, created['id']).courts) == 3


def test_join_is_case_insensitive(client, other_client, game_day_payload):
    created = _create(client, game_day_payload)
    res = other_client.put(f'/game-days/join/{created["joinCode"].lower()}')
    assert res.status_code == 200


def test_join_with_unknown_or_expired_code_is_not_found(client, other_client, game_day_payload):
    created = _create(client, game_day_payload)
    assert other_client.put('/game-days/join/ZZZZ').status_code == 404

    GameDay.query.filter_by(id=created['id']).update(
        {'join_code_expiration': utcnow_naive() - timedelta(seconds=1)}
    )
    db.session.commit()

    assert other_client.put(f'/game-days/join/{created["joinCode"]}').status_code == 404
    assert other_client.put(f'/game-days/transfer/{created["joinCode"]}').status_code == 404
    assert len(db.session.get(GameDay, created['id']).courts) == 1


def test_join_refreshes_join_code_expiration(client, other_client, game_day_payload):
    created = _create(client, game_day_payload)
    soon = utcnow_naive() + timedelta(minutes=5)
    GameDay.query.filter_by(id=created['id']).update({'join_code_expiration': soon})
    db.session.commit()

    assert other_client.put(f'/game-days/join/{created["joinCode"]}').status_code == 200
    game_day = db.session.get(GameDay, created['id'])
    assert game_day.join_code_expiration > utcnow_naive() + timedelta(hours=23)


def test_join_binds_joiner_to_new_court(client, other_client, game_day_payload):
    created = _create(client, game_day_payload)
    joined = json.loads(other_client.put(f'/game-days/join/{created["joinCode"]}').data)

    mine = json.loads(other_client.get('/sessions/game-day').data)
    assert mine['courtId'] == joined['courtId']
    creator = json.loads(client.get('/sessions/game-day').data)
    assert creator['courtId'] == created['courtId']
    assert ClientSession.query.count() == 2


def test_transfer_binds_main_court(client, other_client, app, game_day_payload):
    created = _create(client, game_day_payload)
    joined = json.loads(other_client.put(f'/game-days/join/{created["joinCode"]}').data)

    # The joiner takes over the main court from its own extra court.
    res = other_client.put(f'/game-days/transfer/{created["joinCode"]}')
    assert res.status_code == 200
    view = json.loads(res.data)
    assert view['courtId'] == created['courtId']
    assert view['matches'] == 0

    session_view = json.loads(other_client.get('/sessions/game-day').data)
    assert session_view['courtId'] == created['courtId']
    assert session_view['courtId'] != joined['courtId']

    newcomer = app.test_client()
    view = json.loads(newcomer.put(f'/game-days/transfer/{created["joinCode"]}').data)
    assert view['courtId'] == created['courtId']


def test_transfer_view_merges_ratings_and_excludes_main_court(
    client, other_client, game_day_payload,
):
    client.put('/players', json={'name': 'Ana', 'mu': 25, 'sigma': 8})
    created = _create(client, {**game_day_payload, 'playingTeams': [_team('Ana')]})
    joined = json.loads(other_client.put(f'/game-days/join/{created["joinCode"]}').data)
    other_client.put('/sessions/game-day', json={'playingTeams': [_team('Bob')]})
    assert joined['courtId']

    view = json.loads(other_client.put(f'/game-days/transfer/{created["joinCode"]}').data)
    assert [p['name'] for p in view['players']] == ['Ana']
    assert view['players'][0]['mu'] == 25
    assert view['players'][0]['sigma'] == 8
    assert [p['name'] for p in view['otherPlayingTeams']] == ['Bob']
    assert [p['name'] for team in view['playingTeams'] for p in team] == ['Ana']


def test_transfer_without_courts_is_not_found(client, game_day_payload):
    created = _create(client, game_day_payload)
    GameDayCourt.query.filter_by(game_day_id=created['id']).delete()
    db.session.commit()

    assert client.put(f'/game-days/transfer/{created["joinCode"]}').status_code == 404


def test_restart_clones_configuration_into_new_live_game_day(client, game_day_payload):
    payload = {**game_day_payload, 'maxPoints': 15, 'autoSwitchTeamsPoints': 3}
    payload['players'] = [dict(p, matches=4, victories=3, defeats=1, lastPlayedMatch=4)
                          for p in payload['players']]
    original = _create(client, payload)
    client.put('/sessions/game-day', json={'isLive': False})

    res = client.post(f'/game-days/{original["id"]}/restart')
    assert res.status_code == 201
    restarted = json.loads(res.data)
    assert restarted['id'] != original['id']
    assert re.match(r'^[0-9A-F]{4}$', restarted['joinCode'])

    view = json.loads(client.get('/sessions/game-day').data)
    assert view['id'] == restarted['id']
    assert view['courtId'] == restarted['courtId']
    assert view['isLive'] is True
    assert view['maxPoints'] == 15
    assert view['autoSwitchTeamsPoints'] == 3
    assert view['matches'] == 0

    game_day = db.session.get(GameDay, restarted['id'])
    assert [p['name'] for p in game_day.players] == ['Ana', 'Bob']
    assert all(p['matches'] == 0 and p['victories'] == 0 for p in game_day.players)
    assert game_day.players_to_next_game == []


def test_restart_unknown_game_day_is_not_found(client):
    assert client.post('/game-days/999/restart').status_code == 404
