"""
Erreurs métier de la gestion des élèves.
Levées par les services, traduites en réponses HTTP dans app.main.
"""

from typing import Optional, Sequence


class StudentServiceError(Exception):
    """Classe de base : porte le message destiné à l'utilisateur."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StudentValidationError(StudentServiceError):
    """Champs invalides, détectés avant tout appel réseau."""

    def __init__(self, messages: Sequence[str]):
        self.messages = list(messages)
        super().__init__(self.messages[0] if self.messages else "Données invalides.")


DUPLICATE_MESSAGES = {
    "email": "Cet email est déjà enregistré.",
    "matricula": "Ce matricule est déjà enregistré.",
    None: "Un élève avec ces informations existe déjà.",
}


class DuplicateError(StudentServiceError):
    """Violation d'unicité sur email ou matricula (field=None si non identifié)."""

    def __init__(self, field: Optional[str] = None, message: Optional[str] = None):
        self.field = field
        super().__init__(message or DUPLICATE_MESSAGES.get(field, DUPLICATE_MESSAGES[None]))


class NotFoundError(StudentServiceError):
    def __init__(self, message: str = "Élève introuvable."):
        super().__init__(message)


class AuthenticationError(StudentServiceError):
    def __init__(self, message: str = "Utilisateur non authentifié."):
        super().__init__(message)


class TransportError(StudentServiceError):
    """Toute autre erreur du backend ou du réseau."""
