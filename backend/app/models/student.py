"""
Modèle SQLAlchemy pour la table alunos.
email et matricula sont uniques sur toute la table (contraintes nommées,
utilisées pour identifier le champ en collision).
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base

EMAIL_CONSTRAINT = "alunos_email_key"
MATRICULA_CONSTRAINT = "alunos_matricula_key"


class Student(Base):
    __tablename__ = "alunos"
    __table_args__ = (
        UniqueConstraint("email", name=EMAIL_CONSTRAINT),
        UniqueConstraint("matricula", name=MATRICULA_CONSTRAINT),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    nome = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    matricula = Column(String(50), nullable=False)
    data_nascimento = Column(Date, nullable=True)
    curso = Column(String(100), nullable=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
