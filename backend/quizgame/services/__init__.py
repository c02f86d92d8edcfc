"""Game domain services: users, teams, sessions, leaderboard and questions.

This package contains the state-transition logic that HTTP routes call
into, keeping request parsing separated from core game rules. Services
raise ``quizgame.errors.ServiceError`` subclasses on failure.
"""

from flask import current_app

from quizgame import db
from quizgame.errors import UnavailableError


def storage_fault(action, exc):
    """Roll back, log the fault and build the error to raise in its place."""
    db.session.rollback()
    current_app.logger.exception(f"[storage-fault] {action}: {exc}")
    return UnavailableError(f'Storage is unavailable while {action}. Please retry shortly.')
