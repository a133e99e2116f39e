"""
Service d'accès aux données des élèves.

Construit les requêtes filtrées / paginées, exécute les créations, mises à
jour et suppressions, et traduit les erreurs du backend en erreurs métier
(app.exceptions). Chaque appel reçoit explicitement un StudentContext
(utilisateur courant + notifications) : aucune lecture de session globale.

Aucune opération n'est rejouée automatiquement en cas d'échec.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Union

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
    StudentServiceError,
    TransportError,
)
from app.models.student import EMAIL_CONSTRAINT, MATRICULA_CONSTRAINT, Student
from app.schemas.student import StudentInput, StudentPage, StudentResponse, validate_student
from app.services.notifier import Notifier

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

CONSTRAINT_FIELDS = {
    EMAIL_CONSTRAINT: "email",
    MATRICULA_CONSTRAINT: "matricula",
}

BACKEND_ERRORS = (SQLAlchemyError, OSError)

Payload = Union[StudentInput, Mapping[str, Any]]


@dataclass
class StudentContext:
    """Utilisateur de la session courante et canal de notifications."""
    user_id: Optional[uuid.UUID]
    notifier: Notifier = field(default_factory=Notifier)

    def require_user(self) -> uuid.UUID:
        if self.user_id is None:
            raise AuthenticationError()
        return self.user_id


@dataclass
class StudentFilter:
    search: str = ""
    curso: str = ""  # vide ou blanc = tous les cours
    page: int = 1
    page_size: int = field(default_factory=lambda: settings.STUDENTS_PAGE_SIZE)


def _filter_conditions(user_id: uuid.UUID, filters: StudentFilter) -> list:
    """Recherche (OU sur nome / email / matricula) ET filtre de cours, limités au propriétaire."""
    conditions = [Student.user_id == user_id]

    term = (filters.search or "").strip()
    if term:
        conditions.append(or_(
            Student.nome.icontains(term, autoescape=True),
            Student.email.icontains(term, autoescape=True),
            Student.matricula.icontains(term, autoescape=True),
        ))

    curso = (filters.curso or "").strip()
    if curso:
        conditions.append(Student.curso == curso)

    return conditions


async def list_students(db: AsyncSession, ctx: StudentContext, filters: StudentFilter) -> StudentPage:
    """
    Retourne une page d'élèves (du plus récent au plus ancien) et le nombre
    total d'élèves correspondant aux filtres, avant pagination.
    Aucune notification ici : le contrôleur de liste s'en charge.
    """
    user_id = ctx.require_user()
    conditions = _filter_conditions(user_id, filters)

    try:
        total = await db.scalar(
            select(func.count()).select_from(Student).where(*conditions)
        ) or 0
        result = await db.execute(
            select(Student)
            .where(*conditions)
            .order_by(Student.created_at.desc(), Student.id.desc())
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
        )
        students = result.scalars().all()
    except BACKEND_ERRORS as exc:
        logger.error("Erreur lors de la lecture des élèves : %s", exc)
        raise TransportError("Erreur lors du chargement des élèves.") from exc

    return StudentPage(
        items=[StudentResponse.model_validate(s) for s in students],
        total=total,
        page=filters.page,
        page_size=filters.page_size,
        pages=math.ceil(total / filters.page_size),
    )


async def create_student(db: AsyncSession, ctx: StudentContext, payload: Payload) -> None:
    """
    Valide puis insère un élève rattaché à l'utilisateur courant.
    Ne retourne rien : l'appelant recharge la liste.
    """
    try:
        data = validate_student(payload)
        user_id = ctx.require_user()
        student = Student(**data.model_dump(), user_id=user_id)
        db.add(student)
        await _commit(db)
    except StudentServiceError as exc:
        ctx.notifier.error(exc.message)
        raise

    logger.info("Élève créé : %s (%s)", data.nome, data.matricula)
    ctx.notifier.success("Élève enregistré avec succès.")


async def update_student(
    db: AsyncSession, ctx: StudentContext, student_id: uuid.UUID, payload: Payload
) -> None:
    """
    Remplace les champs modifiables d'un élève appartenant à l'utilisateur courant.
    Lève NotFoundError si l'identifiant est inconnu ou appartient à un autre utilisateur.
    """
    try:
        data = validate_student(payload)
        user_id = ctx.require_user()

        try:
            student = await db.get(Student, student_id)
        except BACKEND_ERRORS as exc:
            logger.error("Erreur lors de la lecture de l'élève %s : %s", student_id, exc)
            raise TransportError("Erreur lors de la mise à jour de l'élève.") from exc

        if student is None or student.user_id != user_id:
            raise NotFoundError()

        for field_name, value in data.model_dump().items():
            setattr(student, field_name, value)
        student.user_id = user_id

        await _commit(db)
    except StudentServiceError as exc:
        ctx.notifier.error(exc.message)
        raise

    logger.info("Élève mis à jour : %s", student_id)
    ctx.notifier.success("Élève mis à jour avec succès.")


async def delete_student(db: AsyncSession, ctx: StudentContext, student_id: uuid.UUID) -> None:
    """
    Supprime définitivement un élève. Supprimer un identifiant absent n'est
    pas une erreur ; seule une erreur du backend est signalée.
    """
    try:
        user_id = ctx.require_user()
        try:
            await db.execute(
                delete(Student).where(Student.id == student_id, Student.user_id == user_id)
            )
            await db.commit()
        except BACKEND_ERRORS as exc:
            await db.rollback()
            logger.error("Erreur lors de la suppression de l'élève %s : %s", student_id, exc)
            raise TransportError("Erreur lors de la suppression de l'élève.") from exc
    except StudentServiceError as exc:
        ctx.notifier.error(exc.message)
        raise

    logger.info("Élève supprimé : %s", student_id)
    ctx.notifier.success("Élève supprimé avec succès.")


def distinct_courses(records: Iterable[Any]) -> List[str]:
    """
    Cours non vides de la page chargée, dédupliqués, dans l'ordre d'apparition.
    Ne reflète que la page courante ; voir list_courses pour l'ensemble des élèves.
    """
    return list(dict.fromkeys(r.curso for r in records if r.curso))


async def list_courses(db: AsyncSession, ctx: StudentContext) -> List[str]:
    """Tous les cours distincts des élèves de l'utilisateur courant, triés."""
    user_id = ctx.require_user()
    try:
        result = await db.execute(
            select(Student.curso)
            .where(Student.user_id == user_id, Student.curso.is_not(None), Student.curso != "")
            .distinct()
            .order_by(Student.curso)
        )
    except BACKEND_ERRORS as exc:
        logger.error("Erreur lors de la lecture des cours : %s", exc)
        raise TransportError("Erreur lors du chargement des cours.") from exc
    return list(result.scalars().all())


async def _commit(db: AsyncSession) -> None:
    """Commit ; les violations d'unicité deviennent DuplicateError, le reste TransportError."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if _is_unique_violation(exc):
            raise DuplicateError(_duplicate_field(exc)) from exc
        logger.error("Contrainte violée à l'enregistrement : %s", exc)
        raise TransportError("Erreur lors de l'enregistrement de l'élève.") from exc
    except BACKEND_ERRORS as exc:
        await db.rollback()
        logger.error("Erreur backend à l'enregistrement : %s", exc)
        raise TransportError("Erreur lors de l'enregistrement de l'élève.") from exc


def _is_unique_violation(exc: IntegrityError) -> bool:
    """SQLSTATE 23505, ou aucun SQLSTATE exposé par le driver."""
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return sqlstate is None or sqlstate == UNIQUE_VIOLATION


def _duplicate_field(exc: IntegrityError) -> Optional[str]:
    """
    Champ en collision d'après le nom de contrainte remonté par le driver
    (asyncpg : cause.constraint_name, psycopg : diag.constraint_name).
    """
    orig = exc.orig
    constraint = (
        getattr(orig, "constraint_name", None)
        or getattr(getattr(orig, "diag", None), "constraint_name", None)
        or getattr(getattr(orig, "__cause__", None), "constraint_name", None)
    )
    if constraint in CONSTRAINT_FIELDS:
        return CONSTRAINT_FIELDS[constraint]

    # Repli fragile : inspection du texte de l'erreur
    message = str(orig).lower() if orig is not None else ""
    if "email" in message:
        return "email"
    if "matricula" in message:
        return "matricula"
    return None
