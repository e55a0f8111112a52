"""
Router auth : connexion email/mot de passe et profil courant.
"""
from fastapi import APIRouter, Depends, Request

from config import settings
from core.dependencies import get_current_user
from core.exceptions import credentials_exception, forbidden_exception
from core.limiter import limiter
from core.security import create_access_token
from models.common import UserStatus
from models.user import LoginRequest, ProfileUpdate, TokenResponse, User
from services.user_service import authenticate_user, update_profile

router = APIRouter()


@router.post("/login", response_model=TokenResponse, summary="Connexion, retourne un JWT")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, body: LoginRequest):
    user_doc = await authenticate_user(body.email, body.password)
    if not user_doc:
        raise credentials_exception("Invalid credentials")
    if user_doc.get("status") == UserStatus.BANNED.value:
        raise forbidden_exception("Account is banned. Please contact support.")

    token = create_access_token({"sub": user_doc["user_id"], "role": user_doc["role"]})
    return TokenResponse(access_token=token, user=User(**user_doc))


@router.get("/me", response_model=User, summary="Profil courant")
async def me(current_user: dict = Depends(get_current_user)):
    return User(**current_user)


@router.patch("/me", response_model=User, summary="Modifier son profil")
async def update_me(
    body: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
):
    updated = await update_profile(current_user["user_id"], body)
    return User(**updated)
