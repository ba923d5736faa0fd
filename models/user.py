# models/user.py
from sqlalchemy import Column, BigInteger, DateTime, Boolean, String, Integer, Enum
from sqlalchemy.sql import func

from .base import Base

GENDERS = ("male", "female", "other")


class User(Base):
    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, index=True)
    # Стабильный id принципала у провайдера идентификации
    external_id = Column(String(64), unique=True, nullable=False)
    email = Column(String(255), nullable=True)

    birth_year = Column(Integer, nullable=True)
    gender = Column(Enum(*GENDERS, name="gender"), nullable=True)
    country = Column(String(64), nullable=True)
    language = Column(String(8), default="ru", nullable=False)

    is_onboarded = Column(Boolean, default=False, nullable=False)
    onboarding_step = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<User id={self.id} external_id={self.external_id}>"
