"""
services/errors.py

Typed failures raised by the services. main.py maps each one to an HTTP
response; services never build responses themselves.
"""

from typing import List


INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class TrackerError(Exception):
    """Base class for every failure the services report to callers."""


class ValidationFailed(TrackerError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class PermissionDenied(TrackerError):
    def __init__(self, message: str = "Not permitted with view-only access"):
        super().__init__(message)


class InvalidToken(TrackerError):
    # Not found, too short, revoked and expired all read the same
    def __init__(self):
        super().__init__(INVALID_TOKEN_MESSAGE)


class SessionNotFound(TrackerError):
    def __init__(self):
        super().__init__("Shared session not found")


class MiniAppRequired(TrackerError):
    def __init__(self, link: str):
        super().__init__(
            "Edit access only works inside the Telegram mini-app. "
            "Open the link in Telegram to continue."
        )
        self.link = link


class GatewayError(TrackerError):
    """Transient persistence failure (network, database, constraint)."""
