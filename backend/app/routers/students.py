"""
Router pour les élèves.
Liste paginée avec recherche et filtre de cours (GET /api/v1/students)
Cours disponibles (GET /api/v1/students/courses)
Création (POST), mise à jour (PUT /{id}), suppression (DELETE /{id})

Toutes les routes exigent une session ; les erreurs métier sont traduites
en réponses HTTP par les handlers de app.main.
"""

import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_student_context
from app.schemas.student import StudentPage
from app.services import student_service
from app.services.student_service import StudentContext, StudentFilter

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


@router.get("", response_model=StudentPage, summary="Lister les élèves")
async def list_students(
    search: str = Query("", description="Recherche sur nom, email ou matricule"),
    curso: str = Query("", description="Cours exact ; vide = tous les cours"),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
    ctx: StudentContext = Depends(get_student_context),
):
    """Retourne une page d'élèves, du plus récent au plus ancien, et le total filtré."""
    return await student_service.list_students(
        db, ctx, StudentFilter(search=search, curso=curso, page=page)
    )


@router.get("/courses", response_model=List[str], summary="Lister les cours")
async def list_courses(
    db: AsyncSession = Depends(get_db),
    ctx: StudentContext = Depends(get_student_context),
):
    return await student_service.list_courses(db, ctx)


@router.post("", status_code=201, summary="Créer un élève")
async def create_student(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    ctx: StudentContext = Depends(get_student_context),
):
    """Crée un élève. Le corps de réponse est vide : recharger la liste."""
    await student_service.create_student(db, ctx, payload)
    return Response(status_code=201)


@router.put("/{student_id}", status_code=204, summary="Modifier un élève")
async def update_student(
    student_id: uuid.UUID,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    ctx: StudentContext = Depends(get_student_context),
):
    await student_service.update_student(db, ctx, student_id, payload)


@router.delete("/{student_id}", status_code=204, summary="Supprimer un élève")
async def delete_student(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: StudentContext = Depends(get_student_context),
):
    """Supprime définitivement un élève. Un identifiant absent n'est pas une erreur."""
    await student_service.delete_student(db, ctx, student_id)
