from typing import Optional
from fastapi import Cookie, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.security import verify_access_token
from core.exceptions import credentials_exception, forbidden_exception
from database import db
from models.common import Actor, UserRole, UserStatus

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token: Optional[str] = Cookie(default=None),
) -> dict:
    # Header Authorization d'abord, puis le cookie `token`
    raw_token = credentials.credentials if credentials else token
    if not raw_token:
        raise credentials_exception("Access denied. No token provided.")
    payload = verify_access_token(raw_token)
    if not payload:
        raise credentials_exception()

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception("Invalid token format")

    user = await db.users.find_one({"user_id": user_id}, {"_id": 0, "password": 0})
    if not user:
        raise credentials_exception("User not found")
    if user.get("status") == UserStatus.BANNED.value:
        raise forbidden_exception("Account is banned. Please contact support.")
    return user


async def get_actor(current_user: dict = Depends(get_current_user)) -> Actor:
    return Actor(user_id=current_user["user_id"], role=current_user["role"])


def require_role(*roles: UserRole):
    """
    Dépendance qui vérifie que l'appelant a l'un des rôles donnés et le
    retourne comme Actor.
    Usage : Depends(require_role(UserRole.ADMIN))
    """
    async def _check(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise forbidden_exception()
        return actor
    return _check


require_admin    = require_role(UserRole.ADMIN)
require_sender   = require_role(UserRole.SENDER)
require_receiver = require_role(UserRole.RECEIVER)
