"""Global leaderboard.

Each user is represented by their best session ever (highest score, then
most recently touched), not their latest one. The ranking is recomputed
from the full session history on every call.
"""
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from quizgame import db
from quizgame.errors import ValidationError
from quizgame.models import GameSession, isoformat
from quizgame.services import storage_fault


def leaderboard_entry(session: GameSession) -> Dict[str, Any]:
    return {
        'userId': session.user_id,
        'username': session.username,
        'pfpUrl': session.pfp_url,
        'team': session.team,
        'score': session.score,
        'questionNumber': session.question_number,
        'completed': session.completed,
        'failed': session.failed,
        'walkedAway': session.walked_away,
        'timeUp': session.time_up,
        'gameStatus': session.status,
        'timestamp': isoformat(session.ended_at),
    }


def _resolve_limit(limit) -> Optional[int]:
    if limit is None or limit == '':
        configured = int(current_app.config.get('LEADERBOARD_LIMIT', 0) or 0)
        return configured or None
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        raise ValidationError('limit must be a positive integer.')
    if limit <= 0:
        raise ValidationError('limit must be a positive integer.')
    return limit


def get_leaderboard(limit=None) -> List[Dict[str, Any]]:
    limit = _resolve_limit(limit)
    best_first = (GameSession.score.desc(), GameSession.ended_at.desc(), GameSession.id.desc())

    # Rank every session within its owner's history; rank 1 is the representative
    ranked = (
        db.session.query(
            GameSession.id.label('session_id'),
            func.row_number().over(partition_by=GameSession.user_id, order_by=best_first).label('rank'),
        )
        .subquery()
    )
    query = (
        GameSession.query
        .join(ranked, ranked.c.session_id == GameSession.id)
        .filter(ranked.c.rank == 1)
        .order_by(*best_first)
    )
    if limit:
        query = query.limit(limit)

    try:
        representatives = query.all()
    except SQLAlchemyError as exc:
        raise storage_fault('computing the leaderboard', exc) from exc

    current_app.logger.info(f"[leaderboard] entries={len(representatives)} limit={limit}")
    return [leaderboard_entry(s) for s in representatives]
