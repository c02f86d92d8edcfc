from quizgame import db
from flask_login import UserMixin
from datetime import datetime, timezone

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
MAX_QUESTION_NUMBER = 10
MAX_INTEGER = 2**31 - 1
PFP_URL_MAX_LENGTH = 512
TEAM_NAME_MAX_LENGTH = 64
TEAM_COLOR_MAX_LENGTH = 32

IN_PROGRESS = 'in_progress'
GAME_STATUSES = (IN_PROGRESS, 'finished', 'game_over', 'walked_away', 'time_up')
OUTCOME_FLAGS = ('completed', 'failed', 'walked_away', 'time_up')

DIFFICULTIES = ('Easy', 'Medium', 'Hard')


def utcnow():
    """Naive UTC timestamp, as stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    return value.isoformat() + 'Z' if value else None


def team_dict(name, color):
    if not name:
        return None
    return {'name': name, 'color': color}


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    pfp_url = db.Column(db.String(PFP_URL_MAX_LENGTH), nullable=True)
    # Team affiliation: the name is locked once set, the colour is cosmetic
    team_name = db.Column(db.String(TEAM_NAME_MAX_LENGTH), nullable=True)
    team_color = db.Column(db.String(TEAM_COLOR_MAX_LENGTH), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_active_at = db.Column(db.DateTime, nullable=True)

    sessions = db.relationship('GameSession', back_populates='user', lazy='dynamic')

    @property
    def team(self):
        return team_dict(self.team_name, self.team_color)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'pfpUrl': self.pfp_url,
            'team': self.team,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
            'lastActiveAt': isoformat(self.last_active_at),
        }


class GameSession(db.Model):
    __tablename__ = 'game_session'
    # At most one live session per user
    __table_args__ = (
        db.Index(
            'uq_game_session_user_in_progress',
            'user_id',
            unique=True,
            sqlite_where=db.text("status = 'in_progress'"),
            postgresql_where=db.text("status = 'in_progress'"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    # Point-in-time snapshot of the owner, refreshed on each write
    username = db.Column(db.String(USERNAME_MAX_LENGTH), nullable=False)
    pfp_url = db.Column(db.String(PFP_URL_MAX_LENGTH), nullable=True)
    team_name = db.Column(db.String(TEAM_NAME_MAX_LENGTH), nullable=True)
    team_color = db.Column(db.String(TEAM_COLOR_MAX_LENGTH), nullable=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    question_number = db.Column(db.Integer, nullable=False, default=0)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    failed = db.Column(db.Boolean, nullable=False, default=False)
    walked_away = db.Column(db.Boolean, nullable=False, default=False)
    time_up = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(32), nullable=False, default=IN_PROGRESS, index=True)
    started_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    # Last touched, not strictly the end of the game
    ended_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    user = db.relationship('User', back_populates='sessions')

    @property
    def team(self):
        return team_dict(self.team_name, self.team_color)

    def __repr__(self):
        return f"<GameSession {self.id} user={self.user_id} score={self.score} status={self.status}>"

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'username': self.username,
            'pfpUrl': self.pfp_url,
            'team': self.team,
            'score': self.score,
            'questionNumber': self.question_number,
            'completed': self.completed,
            'failed': self.failed,
            'walkedAway': self.walked_away,
            'timeUp': self.time_up,
            'gameStatus': self.status,
            'startedAt': isoformat(self.started_at),
            'endedAt': isoformat(self.ended_at),
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.Text, unique=True, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_answer = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(64), nullable=False, default='General Knowledge')
    difficulty = db.Column(db.String(16), nullable=False, default='Medium')
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'options': list(self.options or []),
            'correctAnswer': self.correct_answer,
            'category': self.category,
            'difficulty': self.difficulty,
            'createdAt': isoformat(self.created_at),
        }
