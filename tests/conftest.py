import pytest
from pelada.app import create_app, db, socketio


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def other_client(app):
    """A second browser with its own cookie jar."""
    return app.test_client()


@pytest.fixture
def socket_client(app, client):
    sio = socketio.test_client(app, flask_test_client=client)
    yield sio
    if sio.is_connected():
        sio.disconnect()


@pytest.fixture
def game_day_payload():
    return {
        'maxPoints': 2,
        'playersPerTeam': '4',
        'autoSwitchTeamsPoints': 0,
        'playingTeams': [],
        'isLive': True,
        'playedOn': '2024-05-04T12:00:00.000Z',
        'players': [
            {'name': 'Ana', 'matches': 0, 'victories': 0, 'defeats': 0,
             'lastPlayedMatch': 0, 'playing': False, 'order': 0},
            {'name': 'Bob', 'matches': 0, 'victories': 0, 'defeats': 0,
             'lastPlayedMatch': 0, 'playing': False, 'order': 1},
        ],
        'playersToNextGame': [],
    }
