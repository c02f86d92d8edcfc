from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizgame import db
from quizgame.errors import ConflictError, NotFoundError, ValidationError
from quizgame.models import (
    User,
    MAX_INTEGER,
    PFP_URL_MAX_LENGTH,
    TEAM_COLOR_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    utcnow,
)
from quizgame.services import storage_fault


def parse_user_id(value) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError('User ID is required.')
    # 1.9 must not silently become user 1
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError('User ID must be an integer.')
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError('User ID must be an integer.')
    if not 0 < user_id <= MAX_INTEGER:
        raise ValidationError('User ID is out of range.')
    return user_id


def check_length(value, limit, field):
    if value is not None and len(value) > limit:
        raise ValidationError(f'{field} cannot exceed {limit} characters.')
    return value


def normalize_username(username) -> str:
    if not isinstance(username, str) or not username.strip():
        raise ValidationError('Username is required.')
    username = username.strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f'Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters long.'
        )
    return username


def _optional_text(value, field):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string.')
    return value.strip() or None


def get_user(user_id) -> User:
    user_id = parse_user_id(user_id)
    try:
        user = db.session.get(User, user_id)
    except SQLAlchemyError as exc:
        raise storage_fault('loading the user', exc) from exc
    if user is None:
        raise NotFoundError('User not found.')
    return user


def register_or_login(username, pfp_url=None):
    """Log in an existing username or register it.

    Returns ``(user, created)``. An existing user keeps their avatar unless a
    new one is supplied.
    """
    username = normalize_username(username)
    pfp_url = check_length(_optional_text(pfp_url, 'pfpUrl'), PFP_URL_MAX_LENGTH, 'pfpUrl')
    try:
        user = User.query.filter_by(username=username).first()
        if user:
            if pfp_url:
                user.pfp_url = pfp_url
            user.last_active_at = utcnow()
            db.session.commit()
            current_app.logger.info(f"[login] user={user.id} username={username}")
            return user, False

        user = User(username=username, pfp_url=pfp_url or current_app.config.get('DEFAULT_PFP_URL'))
        db.session.add(user)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError('Username already taken.') from exc
    except SQLAlchemyError as exc:
        raise storage_fault('registering the user', exc) from exc
    current_app.logger.info(f"[register] user={user.id} username={username}")
    return user, True


def update_profile(user_id, pfp_url=None, team_color=None) -> User:
    """Update the avatar and/or the cosmetic team colour. Never the team name."""
    pfp_url = check_length(_optional_text(pfp_url, 'pfpUrl'), PFP_URL_MAX_LENGTH, 'pfpUrl')
    team_color = check_length(_optional_text(team_color, 'teamColor'), TEAM_COLOR_MAX_LENGTH, 'teamColor')
    if pfp_url is None and team_color is None:
        raise ValidationError('Nothing to update: provide pfpUrl and/or teamColor.')

    user = get_user(user_id)
    if team_color is not None and not user.team_name:
        raise ValidationError('Select a team before choosing its colour.')
    try:
        if pfp_url is not None:
            user.pfp_url = pfp_url
        if team_color is not None:
            user.team_color = team_color
        db.session.commit()
    except SQLAlchemyError as exc:
        raise storage_fault('updating the profile', exc) from exc
    current_app.logger.info(f"[profile] user={user.id} pfp={pfp_url is not None} color={team_color}")
    return user
