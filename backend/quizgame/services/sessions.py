from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizgame import db
from quizgame.errors import ValidationError
from quizgame.models import (
    GameSession,
    User,
    GAME_STATUSES,
    IN_PROGRESS,
    MAX_INTEGER,
    MAX_QUESTION_NUMBER,
    OUTCOME_FLAGS,
    PFP_URL_MAX_LENGTH,
    TEAM_COLOR_MAX_LENGTH,
    TEAM_NAME_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    utcnow,
)
from quizgame.services import storage_fault
from quizgame.services.users import check_length, get_user, parse_user_id

# Wire name -> column name
FLAG_FIELDS = {
    'completed': 'completed',
    'failed': 'failed',
    'walkedAway': 'walked_away',
    'timeUp': 'time_up',
}


def _int_field(value, field):
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer.')
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f'{field} must be an integer.')


def _flag(value, field):
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValidationError(f'{field} must be a boolean.')


def _team(value):
    """``(name, color)`` from a team object or bare name; None when omitted."""
    if value is None:
        return None
    if isinstance(value, str):
        return (check_length(value.strip() or None, TEAM_NAME_MAX_LENGTH, 'team.name'), None)
    if isinstance(value, dict):
        name = value.get('name')
        color = value.get('color')
        if name is not None and not isinstance(name, str):
            raise ValidationError('team.name must be a string.')
        if color is not None and not isinstance(color, str):
            raise ValidationError('team.color must be a string.')
        name = check_length((name or '').strip() or None, TEAM_NAME_MAX_LENGTH, 'team.name')
        color = check_length((color or '').strip() or None, TEAM_COLOR_MAX_LENGTH, 'team.color')
        return (name, color)
    raise ValidationError('team must be an object with a name and color.')


def parse_progress(payload) -> dict:
    """Validate a progress report. Raises before anything is written."""
    payload = payload or {}
    username = payload.get('username')
    score = payload.get('score')
    question_number = payload.get('questionNumber')
    if not isinstance(username, str) or not username.strip() or score is None or question_number is None:
        raise ValidationError('Missing required game session data.')
    username = check_length(username.strip(), USERNAME_MAX_LENGTH, 'username')

    score = _int_field(score, 'score')
    if score < 0:
        raise ValidationError('score cannot be negative.')
    if score > MAX_INTEGER:
        raise ValidationError(f'score cannot exceed {MAX_INTEGER}.')
    question_number = _int_field(question_number, 'questionNumber')
    if not 0 <= question_number <= MAX_QUESTION_NUMBER:
        raise ValidationError(f'questionNumber must be between 0 and {MAX_QUESTION_NUMBER}.')

    status = payload.get('gameStatus') or IN_PROGRESS
    if status not in GAME_STATUSES:
        raise ValidationError(f"gameStatus must be one of: {', '.join(GAME_STATUSES)}.")

    pfp_url = payload.get('pfpUrl')
    if pfp_url is not None and not isinstance(pfp_url, str):
        raise ValidationError('pfpUrl must be a string.')
    check_length(pfp_url, PFP_URL_MAX_LENGTH, 'pfpUrl')

    progress = {
        'username': username,
        'pfp_url': pfp_url or None,
        'team': _team(payload.get('team')),
        'score': score,
        'question_number': question_number,
        'status': status,
    }
    for wire, column in FLAG_FIELDS.items():
        progress[column] = _flag(payload.get(wire), wire)
    return progress


def find_live_session(user_id):
    return GameSession.query.filter_by(user_id=user_id, status=IN_PROGRESS).first()


def _update_live_session(user: User, progress: dict):
    """Overwrite the user's live session in place. None when there is none."""
    live = find_live_session(user.id)
    if live is None:
        return None

    team_name, team_color = progress['team'] or (None, None)
    values = {
        GameSession.score: progress['score'],
        GameSession.question_number: progress['question_number'],
        GameSession.status: progress['status'],
        GameSession.username: progress['username'],
        GameSession.pfp_url: progress['pfp_url'],
        GameSession.team_name: team_name,
        GameSession.team_color: team_color,
        GameSession.ended_at: utcnow(),
    }
    # Flags only ever turn on: a false report leaves the stored value alone
    for flag in OUTCOME_FLAGS:
        if progress[flag]:
            values[getattr(GameSession, flag)] = True

    matched = (
        GameSession.query
        .filter(GameSession.id == live.id, GameSession.status == IN_PROGRESS)
        .update(values, synchronize_session=False)
    )
    db.session.commit()
    if not matched:
        # Went terminal under us; the caller starts a fresh session
        return None
    db.session.refresh(live)
    current_app.logger.info(
        f"[session-update] user={user.id} session={live.id} score={live.score} "
        f"question={live.question_number} status={live.status}"
    )
    return live


def _create_session(user: User, progress: dict) -> GameSession:
    team_name, team_color = progress['team'] or (user.team_name, user.team_color)
    now = utcnow()
    session = GameSession(
        user_id=user.id,
        username=progress['username'],
        pfp_url=progress['pfp_url'] or user.pfp_url,
        team_name=team_name,
        team_color=team_color,
        score=progress['score'],
        question_number=progress['question_number'],
        status=progress['status'],
        started_at=now,
        ended_at=now,
        **{flag: progress[flag] for flag in OUTCOME_FLAGS},
    )
    db.session.add(session)
    db.session.commit()
    current_app.logger.info(
        f"[session-create] user={user.id} session={session.id} score={session.score} status={session.status}"
    )
    return session


def report_progress(user_id, payload) -> GameSession:
    """Record a score/progress report for the user's current game.

    Updates the single ``in_progress`` session when there is one, otherwise
    starts a new session. Terminal sessions are never reopened.
    """
    user_id = parse_user_id(user_id)
    progress = parse_progress(payload)
    user = get_user(user_id)

    try:
        session = _update_live_session(user, progress)
        if session is not None:
            return session
        try:
            return _create_session(user, progress)
        except IntegrityError as exc:
            # A concurrent report created the live session first
            db.session.rollback()
            current_app.logger.info(f"[session-race] user={user.id} retrying as update")
            session = _update_live_session(user, progress)
            if session is None:
                raise storage_fault('recording game progress', exc) from exc
            return session
    except SQLAlchemyError as exc:
        raise storage_fault('recording game progress', exc) from exc


def list_user_sessions(user_id):
    """All sessions of a user, most recently touched first."""
    user = get_user(user_id)
    try:
        return user.sessions.order_by(GameSession.ended_at.desc(), GameSession.id.desc()).all()
    except SQLAlchemyError as exc:
        raise storage_fault('listing game sessions', exc) from exc
