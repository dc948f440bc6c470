from typing import Optional


class ApiError(Exception):
    """A backend call failed. Carries the server's message when it sent one."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message)


class AuthError(ApiError):
    """Bad credentials or an expired/invalid token."""

    def __init__(self, message: str = "Could not validate credentials", status_code: int = 401, payload: Optional[dict] = None):
        super().__init__(message, status_code, payload)


class NetworkError(ApiError):
    """The request never completed (connection failure, timeout)."""

    def __init__(self, message: str = "Network request failed"):
        super().__init__(message, None)


class ValidationError(ApiError):
    """Client-side field check failed before anything was sent."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, 422)


class RedirectRequired(Exception):
    """Raised by the route guard; rendered as a redirect response."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Redirect to {location}")


class SessionLoading(Exception):
    """Raised by the route guard while the session bootstrap is in flight."""
