"""Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``main.py`` turn them into
``{"error": message}`` JSON bodies with the class's status code. Anything else
that escapes a route is a hard dependency failure and becomes a bare 500.
"""


class CurioCodexError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error", **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, **self.details}


class ValidationError(CurioCodexError):
    status_code = 400


class AuthError(CurioCodexError):
    status_code = 401


class NotFoundError(CurioCodexError):
    """Absent or owned by someone else. The two cases are never distinguished."""

    status_code = 404
