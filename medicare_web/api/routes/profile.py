from fastapi import APIRouter, Depends, File, UploadFile

from ...api.deps import get_profile_service
from ...schemas.profile import PasswordChange, ProfileEdit
from ...services.profile_service import ProfileService

def build_profile_router(session_dependency) -> APIRouter:
    """Profile screen mounted under each role's subtree with that role's guard."""
    router = APIRouter(dependencies=[Depends(session_dependency)])

    @router.get("/profile")
    async def view_profile(profiles: ProfileService = Depends(get_profile_service)):
        return await profiles.load()

    @router.put("/profile")
    async def update_profile(
        edit: ProfileEdit,
        profiles: ProfileService = Depends(get_profile_service)
    ):
        session = await profiles.update(edit.profile, edit.vitals)
        return {"success": True, "message": "Profile updated successfully", "session": session.model_dump()}

    @router.post("/profile/picture")
    async def upload_picture(
        picture: UploadFile = File(...),
        profiles: ProfileService = Depends(get_profile_service)
    ):
        content = await picture.read()
        session = await profiles.upload_picture(
            (picture.filename or "profile", content, picture.content_type or "application/octet-stream")
        )
        return {"success": True, "session": session.model_dump()}

    @router.post("/profile/change-password")
    async def change_password(
        form: PasswordChange,
        profiles: ProfileService = Depends(get_profile_service)
    ):
        await profiles.change_password(form)
        return {"success": True, "message": "Password changed successfully"}

    return router
