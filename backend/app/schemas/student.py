"""
Schémas Pydantic pour les élèves.
StudentInput est le schéma de validation des champs saisis ; les champs
sont vérifiés dans l'ordre de déclaration (nome, email, matricula,
data_nascimento, curso).
"""

import uuid
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from app.exceptions import StudentValidationError


def _text(v: Any) -> str:
    if v is None:
        return ""
    if not isinstance(v, str):
        raise ValueError("Valeur texte attendue.")
    return v.strip()


class StudentInput(BaseModel):
    """Champs modifiables d'un élève (création et mise à jour)."""

    # id, created_at, updated_at et user_id ne sont jamais fournis par le client
    model_config = ConfigDict(extra="ignore", validate_default=True)

    nome: str = ""
    email: str = ""
    matricula: str = ""
    data_nascimento: Optional[date] = None
    curso: Optional[str] = None

    @field_validator("nome", mode="before")
    @classmethod
    def nome_valide(cls, v: Any) -> str:
        v = _text(v)
        if not v:
            raise ValueError("Le nom est obligatoire.")
        if len(v) > 100:
            raise ValueError("Le nom ne peut pas dépasser 100 caractères.")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def email_valide(cls, v: Any) -> str:
        v = _text(v)
        if not v:
            raise ValueError("L'email est obligatoire.")
        if len(v) > 255:
            raise ValueError("L'email ne peut pas dépasser 255 caractères.")
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise ValueError("Email invalide.")
        return v

    @field_validator("matricula", mode="before")
    @classmethod
    def matricula_valide(cls, v: Any) -> str:
        v = _text(v)
        if not v:
            raise ValueError("Le matricule est obligatoire.")
        if len(v) > 50:
            raise ValueError("Le matricule ne peut pas dépasser 50 caractères.")
        return v

    @field_validator("data_nascimento", mode="before")
    @classmethod
    def date_valide(cls, v: Any) -> Optional[date]:
        # datetime hérite de date : on ne garde que la partie date
        if isinstance(v, datetime):
            return v.date()
        if v is None or isinstance(v, date):
            return v
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                return date.fromisoformat(v.strip())
            except ValueError:
                pass
        raise ValueError("Date de naissance invalide.")

    @field_validator("curso", mode="before")
    @classmethod
    def curso_valide(cls, v: Any) -> Optional[str]:
        v = _text(v)
        if len(v) > 100:
            raise ValueError("Le cours ne peut pas dépasser 100 caractères.")
        return v or None


def _error_message(error: dict) -> str:
    """Message d'un ValueError levé par un validateur, sinon message Pydantic brut."""
    ctx = error.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    return error["msg"]


def validate_student(payload: Union[StudentInput, Mapping[str, Any]]) -> StudentInput:
    """
    Valide les champs d'un élève sans accès réseau.
    Retourne le StudentInput normalisé (valeurs trimées) ou lève
    StudentValidationError avec tous les messages, dans l'ordre des champs.
    """
    if isinstance(payload, StudentInput):
        payload = payload.model_dump()
    try:
        return StudentInput.model_validate(payload)
    except ValidationError as exc:
        raise StudentValidationError([_error_message(e) for e in exc.errors()]) from exc


class StudentResponse(BaseModel):
    """Schéma de réponse pour un élève (GET /students)."""
    id: uuid.UUID
    nome: str
    email: str
    matricula: str
    data_nascimento: Optional[date]
    curso: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StudentPage(BaseModel):
    """Une page de résultats et le nombre total d'élèves correspondant aux filtres."""
    items: List[StudentResponse]
    total: int
    page: int
    page_size: int
    pages: int
