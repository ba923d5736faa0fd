# models/photo.py
import enum

from sqlalchemy import Column, BigInteger, String, Boolean, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class PhotoStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Photo(Base):
    __tablename__ = "photos"

    id = Column(BigInteger, primary_key=True, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    s3_key = Column(String(length=255), nullable=False)
    status = Column(
        Enum(PhotoStatus, name="photo_status"),
        default=PhotoStatus.pending,
        nullable=False,
    )
    rejection_reason = Column(String(length=255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", backref="photos")

    __table_args__ = (
        # Не больше одного активного фото на пользователя
        Index(
            "uq_photos_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    def __repr__(self):
        return f"<Photo id={self.id} user={self.user_id} status={self.status}>"
