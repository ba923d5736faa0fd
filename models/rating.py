# models/rating.py
from sqlalchemy import (
    Column, BigInteger, Integer, Float, Boolean, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func

from .base import Base


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(BigInteger, primary_key=True, index=True)
    rater_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rated_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    photo_id = Column(BigInteger, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False)
    score = Column(Float, nullable=False)
    # Вес голоса на момент оценки, позже не пересчитывается
    rater_power = Column(Float, default=1.0, nullable=False)
    view_duration_ms = Column(Integer, nullable=True)
    is_counted = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("rater_id", "photo_id", name="uq_ratings_rater_photo"),
        CheckConstraint("score >= 1 AND score <= 10", name="score_range"),
        CheckConstraint("rater_id <> rated_id", name="not_self"),
    )

    def __repr__(self) -> str:
        return f"<Rating {self.rater_id}→{self.rated_id} score={self.score}>"
