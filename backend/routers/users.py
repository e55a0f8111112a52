"""
Router utilisateurs : administration des comptes (blocage / déblocage).
"""
from fastapi import APIRouter, Depends

from core.dependencies import require_admin
from models.common import Actor
from models.user import User
from services.user_service import toggle_user_status

router = APIRouter()


@router.patch("/{user_id}/status", summary="Bannir / réactiver un compte (admin)")
async def toggle_status(user_id: str, admin: Actor = Depends(require_admin)):
    user = await toggle_user_status(user_id, admin)
    return {"message": f"User {user['status']}", "user": User(**user)}
