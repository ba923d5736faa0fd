# models/rating_stats.py
from sqlalchemy import Column, BigInteger, Integer, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from .base import Base


class RatingStats(Base):
    __tablename__ = "rating_stats"

    id = Column(BigInteger, primary_key=True, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    current_rating = Column(Float, nullable=True)
    rating_7d_ago = Column(Float, nullable=True)
    rating_30d_ago = Column(Float, nullable=True)
    percentile = Column(Float, nullable=True)

    ratings_received_count = Column(Integer, default=0, nullable=False)
    ratings_given_count = Column(Integer, default=0, nullable=False)
    rating_power = Column(Float, default=1.0, nullable=False)
    is_rating_visible = Column(Boolean, default=False, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<RatingStats user={self.user_id} rating={self.current_rating} "
            f"received={self.ratings_received_count}>"
        )
