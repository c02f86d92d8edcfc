from datetime import datetime

import pytest

from conftest import progress
from quizgame import db
from quizgame.errors import UnavailableError, ValidationError
from quizgame.services.leaderboard import get_leaderboard
from quizgame.services.sessions import report_progress

ENTRY_FIELDS = {
    'userId', 'username', 'pfpUrl', 'team', 'score', 'questionNumber',
    'completed', 'failed', 'walkedAway', 'timeUp', 'gameStatus', 'timestamp',
}


def played(user, score, status, ended_at, **overrides):
    """Record a concluded game and pin its last-touched time."""
    session = report_progress(user.id, progress(
        username=user.username, score=score, questionNumber=5, gameStatus=status, **overrides
    ))
    session.ended_at = ended_at
    db.session.commit()
    return session


def test_empty_history(flask_app):
    assert get_leaderboard() == []


def test_entry_shape(make_user):
    user = make_user('alice')
    played(user, 40, 'game_over', datetime(2024, 5, 1, 12, 0, 0), failed=True)

    [entry] = get_leaderboard()
    assert set(entry) == ENTRY_FIELDS
    assert entry['userId'] == user.id
    assert entry['username'] == 'alice'
    assert entry['team'] == {'name': 'Red', 'color': '#ff0000'}
    assert entry['failed'] is True
    assert entry['gameStatus'] == 'game_over'
    assert entry['timestamp'] == '2024-05-01T12:00:00Z'


@pytest.mark.parametrize('order', [(50, 80), (80, 50)])
def test_best_session_represents_the_user(make_user, order):
    user = make_user('alice')
    played(user, order[0], 'finished', datetime(2024, 1, 1))
    played(user, order[1], 'finished', datetime(2024, 1, 2))

    [entry] = get_leaderboard()
    assert entry['score'] == 80


def test_equal_best_scores_prefer_most_recent_session(make_user):
    user = make_user('alice')
    played(user, 70, 'finished', datetime(2024, 1, 1), pfpUrl='https://example.test/older.png')
    played(user, 70, 'game_over', datetime(2024, 1, 3), pfpUrl='https://example.test/newer.png')

    [entry] = get_leaderboard()
    assert entry['pfpUrl'] == 'https://example.test/newer.png'
    assert entry['gameStatus'] == 'game_over'


def test_ordering_by_score_then_recency(make_user):
    a = make_user('alice')
    b = make_user('bob')
    c = make_user('carol')
    played(a, 30, 'finished', datetime(2024, 1, 1))
    played(a, 90, 'game_over', datetime(2024, 1, 2))
    played(b, 90, 'finished', datetime(2024, 1, 5))
    played(c, 20, 'time_up', datetime(2024, 1, 9))

    board = get_leaderboard()
    assert [e['username'] for e in board] == ['bob', 'alice', 'carol']
    assert [e['score'] for e in board] == [90, 90, 20]


def test_live_sessions_count_towards_the_leaderboard(make_user):
    user = make_user('alice')
    played(user, 10, 'finished', datetime(2024, 1, 1))
    report_progress(user.id, progress(score=60, questionNumber=6))

    [entry] = get_leaderboard()
    assert entry['score'] == 60
    assert entry['gameStatus'] == 'in_progress'


def test_limit(make_user):
    for i, name in enumerate(['alice', 'bob', 'carol']):
        played(make_user(name), 10 * (i + 1), 'finished', datetime(2024, 1, i + 1))

    assert [e['username'] for e in get_leaderboard(limit=2)] == ['carol', 'bob']
    assert [e['username'] for e in get_leaderboard(limit='1')] == ['carol']


def test_configured_limit_applies_by_default(flask_app, make_user):
    for i, name in enumerate(['alice', 'bob']):
        played(make_user(name), 10 * (i + 1), 'finished', datetime(2024, 1, i + 1))
    flask_app.config['LEADERBOARD_LIMIT'] = 1

    assert len(get_leaderboard()) == 1


@pytest.mark.parametrize('limit', [0, -3, 'many'])
def test_invalid_limit(flask_app, limit):
    with pytest.raises(ValidationError):
        get_leaderboard(limit=limit)


def test_storage_fault_is_unavailable(flask_app):
    db.drop_all()
    with pytest.raises(UnavailableError):
        get_leaderboard()
