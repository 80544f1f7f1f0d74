"""Socket.IO subscriptions to game-day rooms."""
from flask_socketio import emit, join_room, leave_room
from pelada.app import socketio
from pelada.services.notifier import game_day_room


def _room_from_payload(data):
    raw_id = data.get('gameDayId', data.get('id')) if isinstance(data, dict) else data
    try:
        game_day_id = int(raw_id)
    except (TypeError, ValueError):
        return None
    if game_day_id <= 0:
        return None
    return game_day_room(game_day_id)


@socketio.on('join')
def on_join(data):
    room = _room_from_payload(data)
    if not room:
        emit('status', {'error': 'Game day id required'})
        return

    join_room(room)
    emit('status', {'message': f'Joined {room}'})


@socketio.on('leave')
def on_leave(data):
    room = _room_from_payload(data)
    if room:
        leave_room(room)
