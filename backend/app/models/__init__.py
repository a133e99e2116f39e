# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# users doit être chargé avant alunos (FK alunos.user_id → users.id).

from app.models.user import User, UserSession  # noqa: F401  — doit précéder student
from app.models.student import Student  # noqa: F401
