"""Errors raised by the game-state store and operator actions.

Every error carries the HTTP status the action boundary answers with, so the
blueprint can turn any of them into a ``{'error': ...}`` response.
"""


class GameStateError(Exception):
    status_code = 400

    def __init__(self, message: str = '', status_code: int = None):
        super().__init__(message or self.__class__.__name__)
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self):
        return {'error': self.message, 'kind': self.__class__.__name__}


class DocumentNotFound(GameStateError):
    status_code = 404


class WriteFailure(GameStateError):
    status_code = 503


class MissingStatementError(GameStateError):
    status_code = 409


class MissingActualValueError(GameStateError):
    status_code = 409


class SetNotFoundError(GameStateError):
    status_code = 404


class IllegalTransitionError(GameStateError):
    status_code = 409


class InvalidPayloadError(GameStateError):
    status_code = 400


class ImportValidationError(GameStateError):
    status_code = 400
