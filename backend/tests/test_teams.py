import pytest

from quizgame import db
from quizgame.models import User
from quizgame.errors import NotFoundError, TeamLockedError, ValidationError
from quizgame.services import teams
from quizgame.services.teams import assign_team
from quizgame.services.users import get_user, register_or_login, update_profile


def test_first_choice_sets_team(make_user):
    user = make_user('alice')
    assert user.team is None

    updated = assign_team(user.id, 'Red')
    assert updated.team == {'name': 'Red', 'color': None}
    assert updated.last_active_at is not None


def test_reselecting_same_team_is_idempotent(make_user):
    user = make_user('alice')
    assign_team(user.id, 'Red')
    first_touch = user.last_active_at

    again = assign_team(user.id, 'Red')
    assert again.team_name == 'Red'
    assert again.last_active_at >= first_touch


def test_switching_team_is_forbidden_and_reports_current(make_user):
    user = make_user('alice')
    assign_team(user.id, 'Red')

    with pytest.raises(TeamLockedError) as excinfo:
        assign_team(user.id, 'Blue')

    assert excinfo.value.current_team == 'Red'
    assert excinfo.value.to_dict()['currentTeam'] == 'Red'
    assert excinfo.value.status_code == 403
    assert user.team_name == 'Red'


def test_team_name_is_trimmed(make_user):
    user = make_user('alice')
    assign_team(user.id, '  Red ')
    assert assign_team(user.id, 'Red').team_name == 'Red'


def test_reaffirming_keeps_team_color(make_user):
    user = make_user('alice')
    assign_team(user.id, 'Red')
    update_profile(user.id, team_color='#aa0000')

    again = assign_team(user.id, 'Red')
    assert again.team == {'name': 'Red', 'color': '#aa0000'}


@pytest.mark.parametrize('user_id, team_name', [
    (None, 'Red'),
    ('', 'Red'),
    ('not-a-number', 'Red'),
    (1, None),
    (1, '   '),
    (1.9, 'Red'),
    ('1.9', 'Red'),
    (True, 'Red'),
    (10**20, 'Red'),
    (1, 'x' * 65),
])
def test_missing_or_malformed_input_is_rejected(make_user, user_id, team_name):
    make_user('alice')
    with pytest.raises(ValidationError):
        assign_team(user_id, team_name)


def test_unknown_user(flask_app):
    with pytest.raises(NotFoundError):
        assign_team(999, 'Red')


def concurrent_team_write(monkeypatch, team_name):
    """Load the user, then let another writer lock ``team_name`` before ours."""
    def stale_get_user(user_id):
        user = get_user(user_id)
        db.session.refresh(user)
        User.query.filter_by(id=user.id).update({User.team_name: team_name}, synchronize_session=False)
        return user
    monkeypatch.setattr(teams, 'get_user', stale_get_user)


def test_concurrent_different_team_wins_the_lock(make_user, monkeypatch):
    user = make_user('alice')
    concurrent_team_write(monkeypatch, 'Blue')

    with pytest.raises(TeamLockedError) as excinfo:
        assign_team(user.id, 'Red')

    assert excinfo.value.current_team == 'Blue'
    assert User.query.filter_by(id=user.id).one().team_name == 'Blue'


def test_concurrent_same_team_is_success(make_user, monkeypatch):
    user = make_user('alice')
    concurrent_team_write(monkeypatch, 'Red')

    updated = assign_team(user.id, 'Red')
    assert updated.team_name == 'Red'


def test_user_id_parsing_keeps_whole_numbers(make_user):
    user = make_user('alice')
    assert assign_team(str(user.id), 'Red').id == user.id
    assert assign_team(float(user.id), 'Red').id == user.id


@pytest.mark.parametrize('pfp_url, team_color', [
    ('https://example.test/' + 'a' * 512, None),
    (None, 'c' * 33),
])
def test_profile_fields_are_length_checked(make_user, pfp_url, team_color):
    user = make_user('alice')
    assign_team(user.id, 'Red')
    with pytest.raises(ValidationError):
        update_profile(user.id, pfp_url=pfp_url, team_color=team_color)
    assert user.pfp_url == 'https://example.test/default.png'
    assert user.team_color is None


def test_register_rejects_long_avatar_url(flask_app):
    with pytest.raises(ValidationError):
        register_or_login('alice', 'https://example.test/' + 'a' * 512)
    assert User.query.count() == 0
