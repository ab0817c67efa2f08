import uuid
from sqlalchemy import JSON, Column, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from sqlalchemy.dialects.postgresql import JSONB

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere (sqlite in dev/tests)
JsonDoc = JSON().with_variant(JSONB(), "postgresql")


def _new_uid() -> str:
    return str(uuid.uuid4())


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(Text, primary_key=True, default=_new_uid)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, unique=True)
    password_hash = Column(Text)

    # whole schedule, replaced on every upload
    courses = Column(JsonDoc, nullable=False, default=list)

    csv_file_name = Column(Text)
    csv_url = Column(Text)
    csv_uploaded_at = Column(DateTime(timezone=True))

    # walking-distance origin for study space suggestions
    study_origin = Column(Text)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Friendship(Base):
    """One directed edge; a confirmed friendship is stored as both directions."""
    __tablename__ = "friendships"
    __table_args__ = (UniqueConstraint("user_key", "friend_key", name="uq_friendship_edge"),)

    friendship_id = Column(Integer, primary_key=True, autoincrement=True)
    user_key = Column(Text, nullable=False, index=True)
    friend_key = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
