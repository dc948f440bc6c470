from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from typing import Any, Dict

from ...api.deps import get_session_store
from ...core.exceptions import RedirectRequired, SessionLoading
from ...core.security import dashboard_path
from ...schemas.auth import LoginCredentials, LoginForm, RegisterFields
from ...services.auth_service import SessionStore
from ...services.route_guard import GuardState, guard_state, landing_decision

router = APIRouter(tags=["Session"])

def redirect_to_landing(store: SessionStore) -> None:
    """Send the caller to their dashboard, or to /login without a session."""
    decision = landing_decision(store)
    if decision.state == GuardState.LOADING:
        raise SessionLoading()
    if decision.force_logout:
        store.logout()
    raise RedirectRequired(decision.redirect_to)

def _session_view(store: SessionStore) -> Dict[str, Any]:
    session = store.session
    return {
        "state": guard_state(store).value,
        "session": session.model_dump() if session else None,
        "home": dashboard_path(session.role) if session else None,
    }

@router.get("/login")
@router.get("/register")
async def auth_screen(store: SessionStore = Depends(get_session_store)):
    """Public screens; a signed-in user is sent to their dashboard instead."""
    if store.is_authenticated:
        redirect_to_landing(store)
    return _session_view(store)

@router.post("/login")
async def login(
    form: LoginForm,
    store: SessionStore = Depends(get_session_store)
):
    """Sign in with an email or mobile number."""
    result = await store.login(LoginCredentials.from_identifier(form.identifier, form.password))
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "message": result.message},
        )
    return {"success": True, **_session_view(store)}

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    fields: RegisterFields,
    store: SessionStore = Depends(get_session_store)
):
    """Create a patient account and sign in."""
    result = await store.register(fields)
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": result.message},
        )
    return {"success": True, **_session_view(store)}

@router.post("/logout")
async def logout(store: SessionStore = Depends(get_session_store)):
    store.logout()
    return {"success": True, "redirect": "/login"}

@router.get("/session")
async def current_session(store: SessionStore = Depends(get_session_store)):
    """Guard state plus the cached profile for display while loading."""
    return {**_session_view(store), "cachedProfile": store.cached_profile()}

@router.get("/")
async def root(store: SessionStore = Depends(get_session_store)):
    redirect_to_landing(store)

@router.get("/dashboard")
async def dashboard(store: SessionStore = Depends(get_session_store)):
    redirect_to_landing(store)
