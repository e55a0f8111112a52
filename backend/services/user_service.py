"""
Service utilisateurs : connexion par mot de passe, profil, blocage par un admin.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from core.exceptions import Forbidden, NotFound
from core.security import hash_password, verify_password
from database import db
from models.common import Actor, UserRole, UserStatus
from models.user import ProfileUpdate

logger = logging.getLogger(__name__)

_PUBLIC_FIELDS = {"_id": 0, "password": 0}


async def get_user(user_id: str) -> Optional[dict]:
    return await db.users.find_one({"user_id": user_id}, _PUBLIC_FIELDS)


async def authenticate_user(email: str, password: str) -> Optional[dict]:
    """Retourne le document utilisateur (sans mot de passe) ou None."""
    user = await db.users.find_one({"email": email}, {"_id": 0})
    if not user or not verify_password(password, user.get("password", "")):
        logger.info("Failed login for %s", email)
        return None
    user.pop("password", None)
    return user


async def update_profile(user_id: str, body: ProfileUpdate) -> dict:
    updates = body.model_dump(exclude_none=True)
    if "password" in updates:
        updates["password"] = hash_password(updates["password"])
    if updates:
        updates["updated_at"] = datetime.now(timezone.utc)
        await db.users.update_one({"user_id": user_id}, {"$set": updates})
    return await get_user(user_id)


async def toggle_user_status(user_id: str, actor: Actor) -> dict:
    """
    Bascule un compte entre `active` et `banned`.
    Un compte `inactive` repasse `active`. Le prochain appel authentifié d'un
    compte banni est refusé (403).
    """
    if actor.role != UserRole.ADMIN:
        raise Forbidden("Only admins can change account status")
    if user_id == actor.user_id:
        raise Forbidden("Admins cannot change their own status")

    user = await get_user(user_id)
    if not user:
        raise NotFound("User")

    new_status = UserStatus.BANNED if user.get("status") == UserStatus.ACTIVE.value else UserStatus.ACTIVE
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {"status": new_status.value, "updated_at": datetime.now(timezone.utc)}},
    )
    logger.info("User %s %s by %s", user_id, new_status.value, actor.user_id)
    return await get_user(user_id)
