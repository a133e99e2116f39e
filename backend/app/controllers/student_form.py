"""
Contrôleur du formulaire élève (création / édition).

État "empty" : aucun élève chargé, la soumission crée un élève.
État "populated" : les champs d'un élève existant sont chargés, la
soumission le met à jour.
"""

import logging
import uuid
from typing import Awaitable, Callable, Dict, Optional

from app.exceptions import StudentServiceError
from app.schemas.student import StudentResponse
from app.services import student_service
from app.services.student_service import StudentContext

logger = logging.getLogger(__name__)

EMPTY = "empty"
POPULATED = "populated"

FIELDS = ("nome", "email", "matricula", "data_nascimento", "curso")


def empty_draft() -> Dict[str, str]:
    return {name: "" for name in FIELDS}


class StudentFormController:
    def __init__(
        self,
        session_factory: Callable,
        context: StudentContext,
        on_saved: Optional[Callable[[], Awaitable]] = None,
    ):
        self._session_factory = session_factory
        self.context = context
        self.on_saved = on_saved

        self.is_open = False
        self.submitting = False
        self.student_id: Optional[uuid.UUID] = None
        self.draft = empty_draft()

    @property
    def state(self) -> str:
        return POPULATED if self.student_id is not None else EMPTY

    def open(self, student: Optional[StudentResponse] = None) -> bool:
        """Ouvre le formulaire, pré-rempli si un élève est fourni ; refusé pendant une soumission."""
        if self.submitting:
            return False
        self.load(student)
        self.is_open = True
        return True

    def load(self, student: Optional[StudentResponse]) -> None:
        if student is None:
            self.student_id = None
            self.draft = empty_draft()
            return
        self.student_id = student.id
        self.draft = {
            "nome": student.nome,
            "email": student.email,
            "matricula": student.matricula,
            "data_nascimento": student.data_nascimento.isoformat() if student.data_nascimento else "",
            "curso": student.curso or "",
        }

    def close(self) -> bool:
        if self.submitting:
            return False
        self.is_open = False
        self.load(None)
        return True

    def set_field(self, name: str, value: str) -> bool:
        """Modifie un champ du brouillon ; refusé pendant une soumission."""
        if self.submitting:
            return False
        if name not in FIELDS:
            raise KeyError(name)
        self.draft[name] = value
        return True

    async def submit(self) -> bool:
        """
        Crée ou met à jour l'élève selon l'état du formulaire.
        Succès : formulaire fermé et vidé, puis on_saved().
        Échec : brouillon conservé, formulaire ouvert (notification déjà émise par le service).
        """
        if self.submitting:
            logger.debug("Soumission déjà en cours, ignorée")
            return False
        self.submitting = True
        try:
            async with self._session_factory() as db:
                if self.student_id is None:
                    await student_service.create_student(db, self.context, self.draft)
                else:
                    await student_service.update_student(db, self.context, self.student_id, self.draft)
        except StudentServiceError as exc:
            logger.info("Soumission du formulaire refusée : %s", exc)
            return False
        finally:
            self.submitting = False

        self.close()
        if self.on_saved is not None:
            await self.on_saved()
        return True
