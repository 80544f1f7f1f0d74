"""Game-day change broadcasts over Socket.IO rooms."""

GAME_DAY_UPDATED = 'game-day:updated'
GAME_DAY_TRANSFERRED = 'game-day:transferred'


def game_day_room(game_day_id):
    return f'game_day_{game_day_id}'


class GameDayNotifier:
    """Fire-and-forget, payload-free events; clients re-fetch on receipt."""

    def __init__(self, socketio):
        self._socketio = socketio

    def updated(self, game_day_id):
        self._socketio.emit(GAME_DAY_UPDATED, to=game_day_room(game_day_id))

    def transferred(self, game_day_id):
        self._socketio.emit(GAME_DAY_TRANSFERRED, to=game_day_room(game_day_id))
