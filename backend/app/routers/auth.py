"""
Router pour l'authentification.
Inscription, connexion, déconnexion et utilisateur courant.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_token
from app.models.user import User
from app.schemas.auth import Credentials, TokenResponse, UserResponse
from app.services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["Authentification"])


@router.post("/signup", response_model=UserResponse, status_code=201, summary="Créer un compte")
async def sign_up(data: Credentials, db: AsyncSession = Depends(get_db)):
    return await auth_service.sign_up(db, data)


@router.post("/signin", response_model=TokenResponse, summary="Se connecter")
async def sign_in(data: Credentials, db: AsyncSession = Depends(get_db)):
    return await auth_service.sign_in(db, data)


@router.post("/signout", status_code=204, summary="Se déconnecter")
async def sign_out(token: str = Depends(get_token), db: AsyncSession = Depends(get_db)):
    await auth_service.sign_out(db, token)


@router.get("/me", response_model=UserResponse, summary="Utilisateur connecté")
async def me(user: User = Depends(get_current_user)):
    return user
