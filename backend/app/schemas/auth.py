"""
Schémas Pydantic pour l'authentification.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator


class Credentials(BaseModel):
    """Identifiants d'inscription et de connexion."""
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Le mot de passe doit contenir au moins 6 caractères.")
        return v


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}
