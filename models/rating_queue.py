# models/rating_queue.py
import enum

from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, Enum, UniqueConstraint, Index
from sqlalchemy.sql import func

from .base import Base


class QueueState(str, enum.Enum):
    pending = "pending"
    shown = "shown"
    rated = "rated"
    skipped = "skipped"


# Состояния, из которых строка ещё может быть оценена или пропущена
OPEN_STATES = (QueueState.pending, QueueState.shown)


class RatingQueue(Base):
    __tablename__ = "rating_queue"

    id = Column(BigInteger, primary_key=True, index=True)
    rater_user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    photo_id = Column(BigInteger, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    state = Column(
        Enum(QueueState, name="queue_state"),
        default=QueueState.pending,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("rater_user_id", "photo_id", name="uq_rating_queue_rater_photo"),
        Index("ix_rating_queue_rater_state_priority", "rater_user_id", "state", "priority"),
    )

    def __repr__(self) -> str:
        return f"<RatingQueue {self.rater_user_id}→{self.target_user_id} {self.state.value}>"
