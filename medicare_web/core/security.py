from datetime import datetime, timezone
from typing import Optional
from jose import JWTError, jwt
from enum import Enum

LOGIN_PATH = "/login"

class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

# Dashboard root of each role's route subtree
ROLE_HOME = {
    UserRole.ADMIN: "/admin",
    UserRole.DOCTOR: "/doctor",
    UserRole.PATIENT: "/patient",
}

def parse_role(value: Optional[str]) -> Optional[UserRole]:
    """Map a backend role string onto a known role, None if unrecognised."""
    try:
        return UserRole(value)
    except ValueError:
        return None

def dashboard_path(role: Optional[str]) -> Optional[str]:
    """Return the dashboard root for a role string, None for unknown roles."""
    known = parse_role(role)
    if known is None:
        return None
    return ROLE_HOME[known]

def token_expiry(token: str) -> Optional[datetime]:
    """Read the exp claim of a JWT-shaped token without verifying it.

    The client never holds the signing key, so this is only a hint used to
    skip a doomed profile request. Opaque tokens have no expiry.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None

    exp = claims.get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None

def token_is_expired(token: str, now: Optional[datetime] = None) -> bool:
    """True only when the token carries an exp claim that is in the past."""
    expires_at = token_expiry(token)
    if expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return expires_at <= now
