from cinequiz import db
from datetime import datetime
import uuid

GAME_MODES = ('timed', 'top250', 'infinite', 'multiplayer')
CATEGORIES = ('by_year', 'by_genre', 'by_actor', 'by_festival', 'top_250', 'general')


def generate_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    display_name = db.Column(db.String(64), nullable=False)
    coins = db.Column(db.Integer, default=0)
    total_score = db.Column(db.Integer, default=0)
    games_played = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'displayName': self.display_name,
            'coins': self.coins,
            'totalScore': self.total_score,
            'gamesPlayed': self.games_played,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    question = db.Column(db.Text, nullable=False)
    option_a = db.Column(db.Text, nullable=False)
    option_b = db.Column(db.Text, nullable=False)
    option_c = db.Column(db.Text, nullable=False)
    option_d = db.Column(db.Text, nullable=False)
    correct_answer = db.Column(db.String(1), nullable=False)  # A, B, C or D
    category = db.Column(db.String(32), nullable=False, index=True)
    difficulty = db.Column(db.Integer, default=1)  # 1-5
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        # Never includes correct_answer: this is what players receive
        return {
            'id': self.id,
            'question': self.question,
            'optionA': self.option_a,
            'optionB': self.option_b,
            'optionC': self.option_c,
            'optionD': self.option_d,
            'category': self.category,
            'difficulty': self.difficulty,
        }


class MultiplayerRoom(db.Model):
    __tablename__ = 'multiplayer_room'
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.Text, nullable=False)
    host_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False)
    max_players = db.Column(db.Integer, default=8)
    current_players = db.Column(db.Integer, default=0)
    game_mode = db.Column(db.String(32), default='multiplayer')
    category = db.Column(db.String(32), nullable=True)
    time_per_question = db.Column(db.Integer, default=30)  # seconds
    is_private = db.Column(db.Boolean, default=False)
    password_hash = db.Column(db.String(128), nullable=True)
    is_active = db.Column(db.Boolean, default=True, index=True)
    is_started = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    participants = db.relationship('RoomParticipant', back_populates='room', lazy='dynamic')

    @property
    def status(self) -> str:
        if not self.is_active:
            return 'finished'
        if self.is_started:
            return 'in_progress'
        return 'waiting'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'hostId': self.host_id,
            'maxPlayers': self.max_players,
            'currentPlayers': self.current_players,
            'gameMode': self.game_mode,
            'category': self.category,
            'timePerQuestion': self.time_per_question,
            'isPrivate': self.is_private,
            'isActive': self.is_active,
            'isStarted': self.is_started,
            'status': self.status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


class RoomParticipant(db.Model):
    __tablename__ = 'room_participant'
    __table_args__ = (db.UniqueConstraint('room_id', 'user_id', name='uq_room_participant'),)
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    room_id = db.Column(db.String(36), db.ForeignKey('multiplayer_room.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False)
    score = db.Column(db.Integer, default=0)
    is_ready = db.Column(db.Boolean, default=False)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)
    room = db.relationship('MultiplayerRoom', back_populates='participants')

    def to_dict(self):
        return {
            'id': self.id,
            'roomId': self.room_id,
            'userId': self.user_id,
            'score': self.score,
            'isReady': self.is_ready,
            'joinedAt': self.joined_at.isoformat() if self.joined_at else None,
        }
