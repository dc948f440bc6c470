from fastapi import Depends, Request
from typing import List, Optional
import logging

from ..core.exceptions import RedirectRequired, SessionLoading
from ..core.http import ApiClient
from ..core.security import UserRole
from ..schemas.session import Session
from ..services.appointment_service import AppointmentService
from ..services.auth_service import SessionStore
from ..services.chat_service import ChatService
from ..services.dashboard_service import DashboardService
from ..services.directory_service import DoctorService, PatientService
from ..services.notification_service import NotificationPoller
from ..services.profile_service import ProfileService
from ..services.route_guard import GuardState, evaluate

logger = logging.getLogger(__name__)

# Collaborators are built once in the app factory and kept on app.state
def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store

def get_api_client(request: Request) -> ApiClient:
    return request.app.state.api_client

def get_notification_poller(request: Request) -> NotificationPoller:
    return request.app.state.notification_poller

# Route guard dependencies
def require_role(allowed_roles: Optional[List[UserRole]] = None):
    """Create a dependency that renders the route only for the given roles."""
    async def role_checker(
        store: SessionStore = Depends(get_session_store)
    ) -> Session:
        decision = evaluate(store, allowed_roles)
        if decision.state == GuardState.LOADING:
            raise SessionLoading()
        if decision.force_logout:
            logger.warning(f"Signing out session with unrecognised role '{store.session.role}'")
            store.logout()
        if not decision.allowed:
            raise RedirectRequired(decision.redirect_to)
        return store.session

    return role_checker

async def get_current_session(
    session: Session = Depends(require_role())
) -> Session:
    """Any signed-in user."""
    return session

async def get_admin_session(
    session: Session = Depends(require_role([UserRole.ADMIN]))
) -> Session:
    return session

async def get_doctor_session(
    session: Session = Depends(require_role([UserRole.DOCTOR]))
) -> Session:
    return session

async def get_patient_session(
    session: Session = Depends(require_role([UserRole.PATIENT]))
) -> Session:
    return session

# Page services
def get_appointment_service(api: ApiClient = Depends(get_api_client)) -> AppointmentService:
    return AppointmentService(api)

def get_chat_service(api: ApiClient = Depends(get_api_client)) -> ChatService:
    return ChatService(api)

def get_dashboard_service(api: ApiClient = Depends(get_api_client)) -> DashboardService:
    return DashboardService(api)

def get_doctor_service(api: ApiClient = Depends(get_api_client)) -> DoctorService:
    return DoctorService(api)

def get_patient_service(api: ApiClient = Depends(get_api_client)) -> PatientService:
    return PatientService(api)

def get_profile_service(
    api: ApiClient = Depends(get_api_client),
    store: SessionStore = Depends(get_session_store),
) -> ProfileService:
    return ProfileService(api, store)
