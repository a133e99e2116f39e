"""
Dépendances FastAPI d'authentification : toute route élève exige une session valide.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import AuthenticationError
from app.models.user import User
from app.services import auth_service
from app.services.notifier import Notifier
from app.services.student_service import StudentContext

bearer_scheme = HTTPBearer(auto_error=False)


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    if credentials is None:
        raise AuthenticationError()
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await auth_service.get_current_user(db, token)


def get_student_context(user: User = Depends(get_current_user)) -> StudentContext:
    return StudentContext(user_id=user.id, notifier=Notifier())
