from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from quizgame import db
from quizgame.errors import TeamLockedError, ValidationError
from quizgame.models import User, TEAM_NAME_MAX_LENGTH, utcnow
from quizgame.services import storage_fault
from quizgame.services.users import check_length, get_user, parse_user_id


def assign_team(user_id, team_name) -> User:
    """Fix the user's team, once.

    The first choice sets the team and clears its colour; re-selecting the
    same team only refreshes ``last_active_at``; any other team raises
    ``TeamLockedError`` with the locked name. The write re-checks the lock in
    its WHERE clause so a concurrent choice cannot be overwritten.
    """
    user_id = parse_user_id(user_id)
    if not isinstance(team_name, str) or not team_name.strip():
        raise ValidationError('User ID and team name are required.')
    team_name = check_length(team_name.strip(), TEAM_NAME_MAX_LENGTH, 'team name')

    user = get_user(user_id)
    current = user.team_name
    if current and current != team_name:
        current_app.logger.info(f"[team-lock] user={user.id} current={current} requested={team_name}")
        raise TeamLockedError(current)

    now = utcnow()
    if current:
        criteria = User.team_name == team_name
        values = {User.last_active_at: now, User.updated_at: now}
    else:
        criteria = db.or_(User.team_name.is_(None), User.team_name == '')
        values = {User.team_name: team_name, User.team_color: None,
                  User.last_active_at: now, User.updated_at: now}

    try:
        matched = (
            User.query
            .filter(User.id == user.id, criteria)
            .update(values, synchronize_session=False)
        )
        db.session.commit()
        db.session.refresh(user)
    except SQLAlchemyError as exc:
        raise storage_fault('assigning the team', exc) from exc

    if not matched and user.team_name != team_name:
        # Someone else locked a different team between our read and write
        current_app.logger.info(f"[team-lock] user={user.id} current={user.team_name} requested={team_name} (race)")
        raise TeamLockedError(user.team_name)

    current_app.logger.info(f"[team-select] user={user.id} team={team_name} reaffirmed={bool(current)}")
    return user
