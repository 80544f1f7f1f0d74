import json
from pelada.app import db
from pelada.time_utils import utcnow_naive

DEFAULT_MU = 25.0
DEFAULT_SIGMA = 25.0 / 3


def _safe_json(raw_value, fallback=None):
    if fallback is None:
        fallback = []
    if not raw_value:
        return fallback
    try:
        return json.loads(raw_value)
    except (TypeError, ValueError):
        return fallback


def _isoformat(value):
    return value.isoformat() if value else None


class Player(db.Model):
    """Player Registry entry; ``name`` is the uniqueness key."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    mu = db.Column(db.Float, default=DEFAULT_MU, nullable=False)
    sigma = db.Column(db.Float, default=DEFAULT_SIGMA, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'mu': self.mu, 'sigma': self.sigma}


class GameDay(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    players_json = db.Column(db.Text, default='[]', nullable=False)
    is_live = db.Column(db.Boolean, default=True, nullable=False)
    auto_switch_teams_points = db.Column(db.Integer, default=0, nullable=False)
    max_points = db.Column(db.Integer, nullable=False)
    players_per_team = db.Column(db.String(20), nullable=False)
    played_on = db.Column(db.DateTime, default=lambda: utcnow_naive(), index=True)
    join_code = db.Column(db.String(4), nullable=False, index=True)
    join_code_expiration = db.Column(db.DateTime, nullable=False, index=True)
    players_to_next_game_json = db.Column(db.Text, default='[]', nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    # Insertion order is court order; courts[0] is the main court.
    courts = db.relationship(
        'GameDayCourt', backref='game_day', order_by='GameDayCourt.id',
        cascade='all, delete-orphan',
    )

    @property
    def players(self):
        return _safe_json(self.players_json)

    @players.setter
    def players(self, value):
        self.players_json = json.dumps(value or [])

    @property
    def players_to_next_game(self):
        return _safe_json(self.players_to_next_game_json)

    @players_to_next_game.setter
    def players_to_next_game(self, value):
        self.players_to_next_game_json = json.dumps(value or [])

    @property
    def main_court(self):
        return self.courts[0] if self.courts else None

    @property
    def last_match(self):
        return max((court.matches or 0 for court in self.courts), default=0)

    def to_dict(self):
        return {
            'id': self.id,
            'players': self.players,
            'isLive': self.is_live,
            'autoSwitchTeamsPoints': self.auto_switch_teams_points,
            'maxPoints': self.max_points,
            'playersPerTeam': self.players_per_team,
            'playedOn': _isoformat(self.played_on),
            'joinCode': self.join_code,
            'joinCodeExpiration': _isoformat(self.join_code_expiration),
            'playersToNextGame': self.players_to_next_game,
            'extraCourts': [court.to_dict() for court in self.courts],
        }


class GameDayCourt(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    game_day_id = db.Column(db.Integer, db.ForeignKey('game_day.id'), nullable=False, index=True)
    max_points = db.Column(db.Integer, nullable=False)
    players_per_team = db.Column(db.String(20), nullable=False)
    playing_teams_json = db.Column(db.Text, default='[]', nullable=False)
    auto_switch_teams_points = db.Column(db.Integer, default=0, nullable=False)
    matches = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    @property
    def playing_teams(self):
        return _safe_json(self.playing_teams_json)

    @playing_teams.setter
    def playing_teams(self, value):
        self.playing_teams_json = json.dumps(value or [])

    def to_dict(self):
        return {
            'id': self.id,
            'maxPoints': self.max_points,
            'playersPerTeam': self.players_per_team,
            'playingTeams': self.playing_teams,
            'autoSwitchTeamsPoints': self.auto_switch_teams_points,
            'matches': self.matches,
        }


class ClientSession(db.Model):
    """Server-side session state behind the opaque browser cookie."""
    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    game_day_id = db.Column(db.Integer, nullable=False)
    court_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    expires_at = db.Column(db.DateTime, nullable=False, index=True)


class MigrationMarker(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    applied_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
