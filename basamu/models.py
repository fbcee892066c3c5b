"""
SQLAlchemy models for the content repository.
All database models inherit from Base (declarative base).
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from basamu.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MediaKind(str, enum.Enum):
    """Kind of media stored behind an uploaded URL, decided at upload time."""
    IMAGE = "image"
    VIDEO = "video"


class Executive(Base):
    """
    Executive committee member shown on the leadership roster.
    Display order is rank ascending, then year label descending.
    """
    __tablename__ = "executives"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    position = Column(String, nullable=False)
    role = Column(Text, nullable=False)
    # Free-text label such as "2025/2026"
    year = Column(String(20), nullable=False, index=True)
    rank = Column(Integer, nullable=False, default=0, server_default="0", index=True)
    photo_url = Column(String, nullable=True)
    email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)


class Event(Base):
    """
    Association event. The image/video is fixed at creation.
    """
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    event_date = Column(Date, nullable=True, index=True)
    media_link = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    media_kind = Column(String(10), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)


class CulturalImage(Base):
    """
    Gallery image on the home page, newest first.
    """
    __tablename__ = "cultural_images"

    id = Column(String(36), primary_key=True, default=_new_id)
    image_url = Column(String, nullable=False)
    caption = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)


class HomeContent(Base):
    """
    Singleton home page copy. Seeded outside this service; only ever updated here.
    """
    __tablename__ = "home_content"

    id = Column(String(36), primary_key=True, default=_new_id)
    hero_title = Column(String, nullable=False)
    hero_subtitle = Column(String, nullable=False)
    mission_text = Column(Text, nullable=False)
    vision_text = Column(Text, nullable=False)
    slogan = Column(String, nullable=False)
    hero_image_url = Column(String, nullable=True)
    chairperson_email = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False)


class UserRole(Base):
    """Role granted to an auth user. Read-only for this service."""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_id_role"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String(20), nullable=False)


class Profile(Base):
    """Per-user profile; the primary key is the auth user id."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False)
