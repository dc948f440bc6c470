from typing import Optional, Tuple
import logging

from ..core.config import settings
from ..core.http import ApiClient
from ..core.security import UserRole
from ..schemas.profile import PasswordChange, ProfileUpdate, Vitals
from ..schemas.session import Session
from .auth_service import SessionStore
from .directory_service import PatientService, resolve_asset_url

logger = logging.getLogger(__name__)

class ProfileService:
    """Profile screen shared by every role."""

    def __init__(self, api: ApiClient, store: SessionStore):
        self.api = api
        self.store = store
        self.patients = PatientService(api)

    @property
    def session(self) -> Session:
        return self.store.session

    def _is_patient(self) -> bool:
        return self.session.known_role == UserRole.PATIENT and bool(self.session.patient_id)

    async def load(self) -> dict:
        profile = await self.api.get("/profile/me")
        view = {
            "profile": profile,
            "pictureUrl": resolve_asset_url((profile or {}).get("profilePicture"), settings.static_base_url),
            "patient": None,
        }
        if self._is_patient():
            view["patient"] = await self.patients.get_with_flags(self.session.patient_id)
        return view

    async def update(self, form: ProfileUpdate, vitals: Optional[Vitals] = None) -> Session:
        """Save profile fields and, for patients, vitals; then refresh the session."""
        form.check()
        await self.api.put("/profile/me", json=form.payload())

        if vitals is not None and self._is_patient():
            await self.patients.update_vitals(self.session.patient_id, vitals)

        logger.info(f"Profile updated for {self.session.user_id}")
        return await self.store.update_user()

    async def upload_picture(self, picture: Tuple[str, bytes, str]) -> Session:
        """Upload (filename, content, content type) as the profile picture."""
        await self.api.post("/profile/upload", files={"profilePicture": picture})
        return await self.store.update_user()

    async def change_password(self, form: PasswordChange) -> None:
        form.check()
        await self.api.post("/profile/change-password", json={
            "currentPassword": form.current_password,
            "newPassword": form.new_password,
        })
