import os
import sys
import pytest

# Ensure the backend root (containing the `quizgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizgame import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    DEFAULT_PFP_URL = 'https://example.test/default.png'
    LEADERBOARD_LIMIT = 0
    GAME_QUESTION_LIMIT = 10


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import quizgame.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_user(flask_app):
    from quizgame.services.users import register_or_login

    def _make(username, pfp_url=None):
        user, _ = register_or_login(username, pfp_url)
        return user
    return _make


def progress(**overrides):
    """A valid progress report, overridable per test."""
    payload = {
        'username': 'alice',
        'pfpUrl': 'https://example.test/alice.png',
        'team': {'name': 'Red', 'color': '#ff0000'},
        'score': 0,
        'questionNumber': 0,
        'completed': False,
        'failed': False,
        'walkedAway': False,
        'timeUp': False,
        'gameStatus': 'in_progress',
    }
    payload.update(overrides)
    return payload
