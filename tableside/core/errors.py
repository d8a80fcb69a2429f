"""Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``tableside.main`` render
them as ``{"error": message}`` JSON with the matching status code.
"""
from typing import Optional


class TablesideError(Exception):
    status_code = 500

    def __init__(self, message: str, redirect: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.redirect = redirect

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.redirect:
            body["redirect"] = self.redirect
        return body


class ValidationError(TablesideError):
    """Missing or malformed required fields."""
    status_code = 400


class NotFound(TablesideError):
    status_code = 404


class Unauthorized(TablesideError):
    status_code = 401


class Forbidden(TablesideError):
    status_code = 403


class InvalidTransition(TablesideError):
    """Requested status is not one forward edge away from the current one."""
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class ConcurrentModification(TablesideError):
    status_code = 409


class UpstreamFailure(TablesideError):
    """Store or identity provider unreachable."""
    status_code = 503
