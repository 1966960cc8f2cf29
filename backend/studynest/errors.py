"""Error taxonomy shared by services and routes.

Services raise these; ``main.py`` turns them into ``{"error": message}``
responses with the class's status code.
"""


class StudyNestError(Exception):
    """Base class for errors that map to a client-facing response."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(StudyNestError):
    """Missing or malformed fields."""
    status_code = 400


class Unauthenticated(StudyNestError):
    """No identity supplied, or it does not resolve to a user."""
    status_code = 401


class Forbidden(StudyNestError):
    """Identity resolved but the role lacks the capability."""
    status_code = 403


class NotFound(StudyNestError):
    status_code = 404


class Conflict(StudyNestError):
    """Duplicate name, label or username. Reported as 400 by convention."""
    status_code = 400


class PayloadTooLarge(StudyNestError):
    status_code = 400
