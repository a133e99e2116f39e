"""
Contrôleur d'état de la liste des élèves.

Garde la recherche, le filtre de cours, la page courante et le dernier
résultat chargé ; tout changement de recherche, de filtre ou de page
relance une lecture via student_service.list_students.

Les lectures ne sont ni annulées ni temporisées : chaque requête reçoit un
numéro de séquence croissant ; seul le résultat (ou l'échec) de la
dernière requête émise est pris en compte, les autres sont ignorés.
"""

import logging
import math
import uuid
from typing import Callable, List, Optional

from app.config import settings
from app.exceptions import StudentServiceError
from app.schemas.student import StudentResponse
from app.services import student_service
from app.services.student_service import StudentContext, StudentFilter

logger = logging.getLogger(__name__)

ALL_COURSES = " "  # valeur "Tous les cours" du sélecteur


class StudentListController:
    def __init__(
        self,
        session_factory: Callable,
        context: StudentContext,
        page_size: Optional[int] = None,
        reset_page_on_filter: bool = False,
    ):
        self._session_factory = session_factory
        self.context = context
        self.page_size = page_size or settings.STUDENTS_PAGE_SIZE
        self.reset_page_on_filter = reset_page_on_filter

        self.search_term = ""
        self.course_filter = ""
        self.page = 1
        self.students: List[StudentResponse] = []
        self.total_count = 0
        self.loading = False
        self.pending_delete_id: Optional[uuid.UUID] = None

        self._issued = 0

    # --- Valeurs dérivées ---

    @property
    def page_count(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def can_go_previous(self) -> bool:
        return self.page > 1

    @property
    def can_go_next(self) -> bool:
        return self.page < self.page_count

    @property
    def courses(self) -> List[str]:
        """Cours proposés dans le filtre, calculés sur la page chargée uniquement."""
        return student_service.distinct_courses(self.students)

    # --- Changements d'état ---

    async def set_search_term(self, term: str) -> None:
        self.search_term = term
        if self.reset_page_on_filter:
            self.page = 1
        await self.refresh()

    async def set_course_filter(self, course: str) -> None:
        self.course_filter = "" if course is None or not course.strip() else course
        if self.reset_page_on_filter:
            self.page = 1
        await self.refresh()

    async def go_to_page(self, page: int) -> bool:
        """Change de page ; une page hors bornes est refusée sans appel au backend."""
        if page < 1 or page > max(self.page_count, 1):
            logger.debug("Page %d hors bornes (1..%d), ignorée", page, self.page_count)
            return False
        self.page = page
        await self.refresh()
        return True

    async def next_page(self) -> bool:
        if not self.can_go_next:
            return False
        return await self.go_to_page(self.page + 1)

    async def previous_page(self) -> bool:
        if not self.can_go_previous:
            return False
        return await self.go_to_page(self.page - 1)

    async def refresh(self) -> bool:
        """
        Recharge la page courante. Les données précédentes restent visibles
        pendant le chargement et sont conservées en cas d'échec.
        Retourne True si le résultat a été appliqué.
        """
        self._issued += 1
        sequence = self._issued
        self.loading = True

        filters = StudentFilter(
            search=self.search_term,
            curso=self.course_filter,
            page=self.page,
            page_size=self.page_size,
        )
        try:
            async with self._session_factory() as db:
                result = await student_service.list_students(db, self.context, filters)
        except StudentServiceError as exc:
            if sequence != self._issued:
                logger.debug("Échec obsolète ignoré (requête %d, dernière émise %d) : %s", sequence, self._issued, exc)
                return False
            logger.error("Erreur lors du chargement des élèves : %s", exc)
            self.context.notifier.error("Erreur lors du chargement des élèves.")
            self.loading = False
            return False

        if sequence != self._issued:
            logger.debug("Réponse obsolète ignorée (requête %d, dernière émise %d)", sequence, self._issued)
            return False
        self.students = result.items
        self.total_count = result.total
        self.loading = False
        return True

    # --- Suppression avec confirmation ---

    def request_delete(self, student_id: uuid.UUID) -> None:
        self.pending_delete_id = student_id

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    async def confirm_delete(self) -> bool:
        """Supprime l'élève en attente de confirmation puis recharge la liste."""
        student_id = self.pending_delete_id
        if student_id is None:
            return False
        self.pending_delete_id = None

        try:
            async with self._session_factory() as db:
                await student_service.delete_student(db, self.context, student_id)
        except StudentServiceError as exc:
            # notification déjà émise par student_service
            logger.error("Suppression de l'élève %s échouée : %s", student_id, exc)
            return False

        await self.refresh()
        return True
