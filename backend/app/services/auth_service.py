"""
Service d'authentification : inscription, connexion, déconnexion et
résolution de l'utilisateur courant.

Un jeton JWT porte l'identifiant de l'utilisateur (sub) et celui de sa
session (jti). Il n'est valide que tant que la ligne user_sessions existe
et n'a pas expiré ; la déconnexion supprime cette ligne.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from app.config import settings
from app.exceptions import AuthenticationError, DuplicateError, TransportError
from app.models.user import User, UserSession
from app.schemas.auth import Credentials, TokenResponse

logger = logging.getLogger(__name__)

INVALID_SESSION = "Session invalide ou expirée."


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(user_id: uuid.UUID, session_id: uuid.UUID, expires_at: datetime) -> str:
    payload = {"sub": str(user_id), "jti": str(session_id), "exp": expires_at}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    """Décode le jeton ; lève AuthenticationError s'il est invalide ou expiré."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp},
        )
        payload["sub"] = uuid.UUID(payload["sub"])
        payload["jti"] = uuid.UUID(payload["jti"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        raise AuthenticationError(INVALID_SESSION) from exc
    return payload


async def sign_up(db: AsyncSession, credentials: Credentials) -> User:
    """Crée un compte. Lève DuplicateError si l'email est déjà utilisé."""
    user = User(email=credentials.email.lower(), password_hash=hash_password(credentials.password))
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateError("email", "Cet email est déjà utilisé.") from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Erreur lors de l'inscription : %s", exc)
        raise TransportError("Erreur lors de l'inscription.") from exc
    await db.refresh(user)
    logger.info("Compte créé : %s", user.email)
    return user


async def sign_in(db: AsyncSession, credentials: Credentials) -> TokenResponse:
    """Vérifie les identifiants et ouvre une session."""
    try:
        user = await db.scalar(select(User).where(User.email == credentials.email.lower()))
    except SQLAlchemyError as exc:
        logger.error("Erreur lors de la connexion : %s", exc)
        raise TransportError("Erreur lors de la connexion.") from exc

    if user is None or not verify_password(credentials.password, user.password_hash):
        raise AuthenticationError("Email ou mot de passe incorrect.")

    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    session = UserSession(id=uuid.uuid4(), user_id=user.id, expires_at=expires_at)
    db.add(session)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Erreur lors de l'ouverture de session : %s", exc)
        raise TransportError("Erreur lors de la connexion.") from exc

    logger.info("Connexion de %s", user.email)
    return TokenResponse(
        access_token=create_access_token(user.id, session.id, expires_at),
        expires_at=expires_at,
    )


async def sign_out(db: AsyncSession, token: str) -> None:
    """Ferme la session du jeton, même expiré."""
    payload = decode_access_token(token, verify_exp=False)
    try:
        await db.execute(delete(UserSession).where(UserSession.id == payload["jti"]))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Erreur lors de la déconnexion : %s", exc)
        raise TransportError("Erreur lors de la déconnexion.") from exc
    logger.info("Session %s fermée", payload["jti"])


async def get_current_user(db: AsyncSession, token: str) -> User:
    """Résout l'utilisateur d'un jeton ; lève AuthenticationError sans session valide."""
    payload = decode_access_token(token)
    try:
        session = await db.get(UserSession, payload["jti"])
        user = await db.get(User, payload["sub"]) if session is not None else None
    except SQLAlchemyError as exc:
        logger.error("Erreur lors de la lecture de la session : %s", exc)
        raise TransportError("Erreur lors de la vérification de la session.") from exc

    if (
        session is None
        or user is None
        or session.user_id != payload["sub"]
        or session.expires_at <= datetime.now(timezone.utc)
    ):
        raise AuthenticationError(INVALID_SESSION)
    return user
