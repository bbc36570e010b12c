"""Error taxonomy shared by services and HTTP routes.

Services raise these; routes let them propagate and the handler registered in
``register_error_handlers`` renders them as ``{"error": kind, "message": ...}``.
"""

from flask import jsonify


class GameError(Exception):
    kind = 'GameError'
    status_code = 400

    def __init__(self, message: str = ''):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self):
        return {'error': self.kind, 'message': self.message}


class ValidationError(GameError):
    kind = 'ValidationError'
    status_code = 400


class NotFound(GameError):
    kind = 'NotFound'
    status_code = 404


class Conflict(GameError):
    kind = 'Conflict'
    status_code = 409


class NoActiveRiddle(GameError):
    kind = 'NoActiveRiddle'
    status_code = 400


class AlreadyAnswered(GameError):
    kind = 'AlreadyAnswered'
    status_code = 400


class NoRiddleAvailable(GameError):
    kind = 'NoRiddleAvailable'
    status_code = 503


class TransientStorageFailure(GameError):
    kind = 'TransientStorageFailure'
    status_code = 503


def register_error_handlers(flask_app):
    @flask_app.errorhandler(GameError)
    def handle_game_error(exc: GameError):
        response = jsonify(exc.to_dict())
        response.status_code = exc.status_code
        if isinstance(exc, TransientStorageFailure):
            response.headers['Retry-After'] = '1'
        return response
