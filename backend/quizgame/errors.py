"""Failure kinds raised by the game services.

Routes never build error payloads themselves: services raise one of these and
the handler registered in ``create_app`` renders it.
"""


class ServiceError(Exception):
    kind = 'error'
    status_code = 500

    def __init__(self, message, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self):
        payload = {'success': False, 'error': self.kind, 'message': self.message}
        payload.update(self.extra)
        return payload


class ValidationError(ServiceError):
    """Missing or malformed input. The caller must fix the request."""
    kind = 'validation'
    status_code = 400


class NotFoundError(ServiceError):
    kind = 'not_found'
    status_code = 404


class TeamLockedError(ServiceError):
    """Attempt to switch away from an already chosen team."""
    kind = 'forbidden'
    status_code = 403

    def __init__(self, current_team):
        super().__init__(
            f'You have already selected the {current_team} team and cannot change it. '
            'Please re-select it to proceed.',
            currentTeam=current_team,
        )
        self.current_team = current_team


class ConflictError(ServiceError):
    kind = 'conflict'
    status_code = 409


class UnavailableError(ServiceError):
    """Storage-layer fault. Safe to retry with backoff."""
    kind = 'unavailable'
    status_code = 503
