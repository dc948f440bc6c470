from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..core.security import LOGIN_PATH, UserRole, dashboard_path
from .auth_service import SessionStore

class GuardState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"

@dataclass
class GuardDecision:
    state: GuardState
    allowed: bool = False
    redirect_to: Optional[str] = None
    force_logout: bool = False

def guard_state(store: SessionStore) -> GuardState:
    if store.loading:
        return GuardState.LOADING
    if not store.is_authenticated:
        return GuardState.UNAUTHENTICATED
    return GuardState.AUTHENTICATED

def evaluate(store: SessionStore, allowed_roles: Optional[Iterable[UserRole]] = None) -> GuardDecision:
    """Decide whether a protected route may render for the current session.

    A valid user on the wrong subtree is sent to their own dashboard, never to
    the login screen. A session whose role is unrecognised is signed out.
    """
    state = guard_state(store)
    if state == GuardState.LOADING:
        return GuardDecision(state)
    if state == GuardState.UNAUTHENTICATED:
        return GuardDecision(state, redirect_to=LOGIN_PATH)

    role = store.session.known_role
    if role is None:
        return GuardDecision(state, redirect_to=LOGIN_PATH, force_logout=True)

    if allowed_roles is not None and role not in set(allowed_roles):
        return GuardDecision(state, redirect_to=dashboard_path(role))

    return GuardDecision(state, allowed=True)

def landing_decision(store: SessionStore) -> GuardDecision:
    """Where an unmatched path goes: the user's dashboard or the login screen."""
    decision = evaluate(store)
    if decision.allowed:
        decision.allowed = False
        decision.redirect_to = dashboard_path(store.session.role)
    return decision
